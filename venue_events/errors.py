# errors.py
# search failures surfaced to callers as (message, code)

from typing import Optional


class SearchError(Exception):
    """Base search failure. code: 1 missing coords, 2 missing token, -1 pipeline."""

    code = -1

    def __init__(self, message: str, code: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.cause = cause

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class ConfigurationError(SearchError):
    code = 1


class AuthenticationError(SearchError):
    code = 2


class PipelineError(SearchError):
    code = -1
