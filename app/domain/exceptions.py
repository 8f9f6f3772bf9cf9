"""Centralized exception hierarchy for GrowWatch.

All domain and service exceptions inherit from :class:`GrowWatchError` so that
callers can catch a single base class when they need a broad safety net, yet
still match on specific subclasses where narrower handling is appropriate.

Blueprint-level error handling (see ``app/utils/http.safe_route``) maps these
to the correct HTTP status codes automatically.

Hierarchy
---------
::

    GrowWatchError (base: maps to 500)
    ├── ValidationError              (400: bad input from caller)
    ├── NotFoundError                (404: entity does not exist)
    │   └── SourceNotFoundError      (404: sensor table does not exist)
    ├── ServiceError                 (500: business-logic failure)
    │   ├── RepositoryError          (500: database / persistence)
    │   │   └── StoreUnavailableError (503: store unreachable / timed out)
    │   └── ExternalServiceError     (502: chat API / network)
    └── ConfigurationError           (500: missing / invalid config)
"""

from __future__ import annotations


class GrowWatchError(Exception):
    """Base exception for all GrowWatch application errors.

    Parameters
    ----------
    message:
        Human-readable description (logged server-side, **not** leaked to
        the HTTP client unless the exception class opts in).
    detail:
        Optional machine-readable context dict attached to the error for
        structured logging.
    """

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.detail = detail or {}


# ── Client errors (4xx) ──────────────────────────────────────────────


class ValidationError(GrowWatchError):
    """Caller supplied invalid or incomplete input (HTTP 400)."""

    http_status: int = 400


class NotFoundError(GrowWatchError):
    """Requested entity does not exist (HTTP 404)."""

    http_status: int = 404


class SourceNotFoundError(NotFoundError):
    """A sensor data source (``sensor_<n>`` table) does not exist."""

    def __init__(self, source_id: str) -> None:
        super().__init__(f"Sensor source not found: {source_id}", detail={"source_id": source_id})
        self.source_id = source_id


# ── Server errors (5xx) ──────────────────────────────────────────────


class ServiceError(GrowWatchError):
    """Business-logic failure in a service method (HTTP 500)."""

    http_status: int = 500


class RepositoryError(ServiceError):
    """Database / persistence layer failure (HTTP 500)."""

    http_status: int = 500


class StoreUnavailableError(RepositoryError):
    """The relational store could not be reached or timed out (HTTP 503).

    Distinct from :class:`SourceNotFoundError`: a transient failure says
    nothing about whether the table exists.
    """

    http_status: int = 503


class ExternalServiceError(ServiceError):
    """Third-party or network dependency failure (HTTP 502)."""

    http_status: int = 502


class ConfigurationError(GrowWatchError):
    """Missing or invalid application configuration (HTTP 500)."""

    http_status: int = 500
