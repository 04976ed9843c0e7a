"""Error taxonomy shared by the services and the HTTP layer.

Service code raises these exceptions; the API layer renders every
`PortalError` as a JSON body of the form:

```json
{"error": "Favorites limit of 3 reached", "current_count": 3, "max_allowed": 3}
```

| Exception                  | HTTP status                     |
|----------------------------|---------------------------------|
| ValidationError            | 400                             |
| QuotaExceededError         | 400                             |
| DuplicateFavoriteError     | 400                             |
| AuthenticationError        | 401                             |
| NotFoundError              | 404                             |
| MethodNotAllowedError      | 405                             |
| ConflictError              | 409                             |
| UpstreamError              | mapped from the provider error  |
| StoreNotProvisionedError   | 503                             |
"""

from __future__ import annotations

from typing import Any


class PortalError(Exception):
    """Base exception for all expected service errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        details: Any = None,
        status_code: int | None = None,
        **extra: Any,
    ):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a JSON-serializable body."""
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        body.update(self.extra)
        return body


class ValidationError(PortalError):
    """Malformed input: bad email, missing required field."""

    status_code = 400


class NotFoundError(PortalError):
    """User, session or favorite absent."""

    status_code = 404


class ConflictError(PortalError):
    """Duplicate registered email or user id."""

    status_code = 409


class DuplicateFavoriteError(PortalError):
    """Place already in the user's favorites (case-insensitive)."""

    status_code = 400

    def __init__(self, place: str):
        super().__init__("This place is already in your favorites", place=place)
        self.place = place


class QuotaExceededError(PortalError):
    """Favorites quota reached."""

    status_code = 400

    def __init__(self, current_count: int, max_allowed: int):
        super().__init__(
            f"Favorites limit of {max_allowed} reached",
            current_count=current_count,
            max_allowed=max_allowed,
        )
        self.current_count = current_count
        self.max_allowed = max_allowed


class AuthenticationError(PortalError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class MethodNotAllowedError(PortalError):
    """HTTP method not supported by an endpoint."""

    status_code = 405

    def __init__(self, method: str, allowed: list[str]):
        super().__init__(
            "Method not allowed",
            allowed_methods=allowed,
            received=method,
        )


class UpstreamError(PortalError):
    """A third-party collaborator (identity, payment, weather) failed.

    `status_code` is the HTTP status this service answers with, chosen
    from the kind of failure. `provider` names the collaborator.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: str,
        status_code: int | None = None,
        details: Any = None,
        provider_status: int | None = None,
    ):
        super().__init__(message, details=details, status_code=status_code)
        self.provider = provider
        self.provider_status = provider_status


class StoreNotProvisionedError(PortalError):
    """Backing table missing; the schema has not been created yet."""

    status_code = 503

    def __init__(self, table: str):
        super().__init__(
            "Setup required",
            details=f"The {table} table must be created before use",
            needs_setup=True,
        )
        self.table = table
