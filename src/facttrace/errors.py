"""
Error taxonomy for the claim verification pipeline.

Every error carries the HTTP status it is rendered with when it escapes a
request handler. Dataset and fetch failures are normally absorbed by the
components that raise them; the rest abort the current request only.
"""

from __future__ import annotations

from typing import Any


class FactTraceError(Exception):
    status_code: int = 500

    def __init__(self, message: str, *, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.payload}


class ConfigurationError(FactTraceError):
    """A collaborator is missing required credentials."""


class DatasetLoadError(FactTraceError):
    """The reliability dataset could not be read or parsed."""


class FetchError(FactTraceError):
    """Every attempt to retrieve a page failed."""

    status_code = 502


class ExtractionError(FactTraceError):
    """A page was retrieved but yielded no usable text."""

    status_code = 502


class ModelParseError(FactTraceError):
    """The model response could not be parsed as JSON."""

    status_code = 502


class UpstreamError(FactTraceError):
    """The search or model API returned an error."""

    status_code = 500


class ClaimValidationError(FactTraceError):
    status_code = 400


class PayloadTooLargeError(FactTraceError):
    status_code = 413


class SourceRejectedError(FactTraceError):
    status_code = 422


class NoArticleFoundError(FactTraceError):
    status_code = 404

    def __init__(self, message: str = "No relevant articles found.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class EmptyArticleError(FactTraceError):
    status_code = 502

    def __init__(self, message: str = "Unable to extract article text.", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
