# config.py
# env-backed settings, access token provider, response schema loader

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schema" / "events-response.schema.json"


@dataclass(frozen=True)
class Settings:
    access_token: Optional[str] = None
    graph_version: str = "v2.7"
    request_timeout_s: float = 20.0
    schema_path: str = str(DEFAULT_SCHEMA_PATH)
    frontend_prod: str = ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables (.env honoured)."""
    load_dotenv()

    access_token = os.getenv("FEBL_ACCESS_TOKEN", "") or None
    if not access_token:
        logger.warning("FEBL_ACCESS_TOKEN is not set; searches must pass accessToken explicitly.")

    return Settings(
        access_token=access_token,
        graph_version=os.getenv("GRAPH_API_VERSION", "v2.7"),
        request_timeout_s=float(os.getenv("GRAPH_TIMEOUT_S", "20")),
        schema_path=os.getenv("EVENTS_SCHEMA_PATH", str(DEFAULT_SCHEMA_PATH)),
        frontend_prod=os.getenv("FRONTEND_PROD", ""),
    )


def env_token_provider() -> Optional[str]:
    """Process-wide fallback access token."""
    return get_settings().access_token


@lru_cache(maxsize=None)
def load_schema(path=DEFAULT_SCHEMA_PATH) -> dict:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)
