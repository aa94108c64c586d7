"""Domain exceptions.

A closed set of error variants raised by entities, state machines and
application services. Each variant carries a machine-readable error code;
the API layer maps variants to HTTP status codes and nothing below it
knows about HTTP.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors inherit from this class so the API boundary can
    translate them in one place.
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Error Variants
# ============================================================================


class NotFoundError(DomainError):
    """Raised when a requested entity does not exist."""

    error_code = "NOT_FOUND"


class ConflictError(DomainError):
    """Raised when an operation violates a state invariant."""

    error_code = "CONFLICT"


class BadRequestError(DomainError):
    """Raised when input is missing or malformed."""

    error_code = "BAD_REQUEST"


class UnauthorizedError(DomainError):
    """Raised when the caller is not authenticated."""

    error_code = "UNAUTHORIZED"


class ForbiddenError(DomainError):
    """Raised when the caller lacks permission for an operation."""

    error_code = "FORBIDDEN"


class InternalError(DomainError):
    """Raised when a downstream system fails."""

    error_code = "INTERNAL_ERROR"


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidStateTransitionError(ConflictError):
    """Raised when an invalid state transition is attempted.

    The message is supplied by the caller so each aggregate can phrase the
    violation in its own terms; the transition itself goes into details.
    """

    def __init__(
        self,
        message: str,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        """Initialize invalid state transition error.

        Args:
            message: Human-readable error message.
            entity_type: Type of entity (e.g., "SellerRequest").
            entity_id: ID of the entity.
            current_state: Current state of the entity.
            target_state: Attempted target state.
            allowed_transitions: List of allowed target states from current state.
        """
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed_transitions or [],
            },
        )


# ============================================================================
# Compensation Errors
# ============================================================================


class CompensationFailedError(InternalError):
    """Raised when a rollback write fails after a partial failure.

    Carries both the failure that triggered the compensation and the
    failure of the compensation itself.
    """

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        original_error: BaseException,
        compensation_error: BaseException,
    ) -> None:
        """Initialize compensation failed error.

        Args:
            entity_type: Type of entity being compensated.
            entity_id: ID of the entity.
            original_error: Error that triggered the compensation.
            compensation_error: Error raised by the compensation write.
        """
        super().__init__(
            f"Error updating user role: {original_error}. "
            f"Rollback of {entity_type}({entity_id}) also failed: {compensation_error}",
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "original_error": str(original_error),
                "compensation_error": str(compensation_error),
            },
        )
        self.original_error = original_error
        self.compensation_error = compensation_error
