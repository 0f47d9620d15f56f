"""Custom exception classes for access-denied signals.

Every error carries the same envelope the HTTP boundary renders:
``{"error": {"code": ..., "message": ..., "details": {...}}}``. The core never
imports a transport; ``status_code`` is only a hint for the host.
"""

from enum import Enum
from typing import Any


class PolicyError(Exception):
    """Base policy exception with structured error response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 403,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.error_details = details or {}
        super().__init__(message)

    @property
    def detail(self) -> dict[str, Any]:
        """Error envelope for the transport boundary."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": dict(self.error_details),
            }
        }


def _value(item: Enum | str | None) -> str | None:
    if isinstance(item, Enum):
        return item.value
    return item


class AuthenticationRequiredError(PolicyError):
    """No principal was resolved for the request."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class AccessDeniedError(PolicyError):
    """Common parent for every negative authorization outcome."""


class PermissionDeniedError(AccessDeniedError):
    """Principal lacks one or more required permissions."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            code="INSUFFICIENT_PERMISSIONS",
            message="You don't have permission to access this resource",
            details={"missing_permissions": missing},
        )


class RoleRequiredError(AccessDeniedError):
    """Principal holds none of the roles the route accepts."""

    def __init__(self, required_roles: list[str]) -> None:
        super().__init__(
            code="ROLE_REQUIRED",
            message=f"This action requires one of these roles: {', '.join(required_roles)}",
            details={"required_roles": required_roles},
        )


class PolicyDeniedError(AccessDeniedError):
    """An attribute-based policy denied the action."""

    def __init__(self, reason: str, matched_policy: str | None = None) -> None:
        super().__init__(
            code="POLICY_DENIED",
            message=reason,
            details={"matched_policy": matched_policy},
        )


class PrivilegeDeniedError(AccessDeniedError):
    """Privilege classification check failed."""

    def __init__(self, reason: str, classification: Enum | str | None = None) -> None:
        self.reason = reason
        self.classification = classification
        super().__init__(
            code="PRIVILEGE_DENIED",
            message=reason or "Privileged access denied",
            details={"classification": _value(classification)},
        )


class ConflictOfInterestError(AccessDeniedError):
    """Conflict screening blocked access to a matter."""

    def __init__(
        self,
        reason: str | None,
        conflict_type: Enum | str | None = None,
        check_id: str | None = None,
    ) -> None:
        self.reason = reason
        self.conflict_type = conflict_type
        super().__init__(
            code="CONFLICT_OF_INTEREST",
            message="Access denied due to conflict of interest",
            details={
                "conflict_type": _value(conflict_type),
                "reason": reason,
                "check_id": check_id,
            },
        )


class MissingContextError(AccessDeniedError):
    """Conflict-sensitive route without a resolvable matter (fail-closed mode)."""

    def __init__(self, message: str = "Matter context required for conflict screening") -> None:
        super().__init__(
            code="MISSING_CONTEXT",
            message=message,
        )
