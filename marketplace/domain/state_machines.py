"""State machines for domain entities.

Deterministic state machines that define valid state transitions.
The seller request is the only aggregate in the marketplace whose
status follows a transition table; store and product statuses are set
directly by their owners or administrators.
"""

from enum import Enum

from marketplace.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Seller Request State Machine
# ============================================================================


class SellerRequestStatus(str, Enum):
    """Seller request lifecycle states.

    State diagram:
        PENDING
          │           │
          │ approve   │ reject
          ▼           ▼
        APPROVED    REJECTED

    A failed approval is compensated by writing the request back to
    PENDING. That write is a rollback, not a transition, and bypasses
    this table.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    def can_transition_to(self, target: "SellerRequestStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _SELLER_REQUEST_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["SellerRequestStatus"]:
        """Get list of valid target states.

        Returns:
            List of states that can be transitioned to.
        """
        return sorted(_SELLER_REQUEST_TRANSITIONS.get(self, set()), key=lambda s: s.value)

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state.

        Returns:
            True if no further transitions are possible.
        """
        return len(_SELLER_REQUEST_TRANSITIONS.get(self, set())) == 0


# Defined outside the enum to avoid Enum member restrictions
_SELLER_REQUEST_TRANSITIONS: dict[SellerRequestStatus, set[SellerRequestStatus]] = {
    SellerRequestStatus.PENDING: {SellerRequestStatus.APPROVED, SellerRequestStatus.REJECTED},
    SellerRequestStatus.APPROVED: set(),  # Terminal state
    SellerRequestStatus.REJECTED: set(),  # Terminal state
}


def validate_seller_request_transition(
    request_id: str,
    current: SellerRequestStatus,
    target: SellerRequestStatus,
) -> None:
    """Validate a seller request state transition.

    Args:
        request_id: ID of the seller request.
        current: Current status.
        target: Target status.

    Raises:
        InvalidStateTransitionError: If the request is not pending or the
            target is not reachable from the current state.
    """
    if not current.can_transition_to(target):
        if current != SellerRequestStatus.PENDING:
            message = "Only pending requests can be updated"
        else:
            message = f"Cannot transition seller request to '{target.value}'"
        raise InvalidStateTransitionError(
            message,
            entity_type="SellerRequest",
            entity_id=request_id,
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=[s.value for s in current.allowed_transitions()],
        )
