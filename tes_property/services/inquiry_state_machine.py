"""Inquiry status transition rules."""

from typing import Optional, Union

from tes_property.models.inquiry import InquiryStatus, TERMINAL_STATUSES

S = InquiryStatus

# Directed edges of the inquiry lifecycle; anything not listed is illegal.
VALID_TRANSITIONS: dict[InquiryStatus, tuple[InquiryStatus, ...]] = {
    S.NEW: (S.ASSIGNED, S.CANCELLED),
    S.ASSIGNED: (S.IN_PROGRESS, S.CANCELLED),
    S.IN_PROGRESS: (S.WAITING_PROPERTY_RESERVED, S.VIEWING_SCHEDULED, S.CANCELLED),
    S.WAITING_PROPERTY_RESERVED: (S.VIEWING_SCHEDULED, S.CANCELLED),
    S.VIEWING_SCHEDULED: (
        S.VIEWED_INTERESTED,
        S.VIEWED_NOT_INTERESTED,
        S.VIEWED_UNDECIDED,
        S.CANCELLED,
    ),
    S.VIEWED_INTERESTED: (S.DEPOSIT_PAID, S.CANCELLED),
    S.VIEWED_NOT_INTERESTED: (S.CANCELLED,),
    S.VIEWED_UNDECIDED: (S.VIEWED_INTERESTED, S.VIEWED_NOT_INTERESTED, S.CANCELLED),
    S.DEPOSIT_PAID: (S.SUCCESSFUL, S.CANCELLED),
    S.SUCCESSFUL: (),
    S.CANCELLED: (),
}

# Agent can no longer be swapped once money has changed hands
REASSIGNMENT_LOCKED_STATUSES = frozenset({S.DEPOSIT_PAID, S.SUCCESSFUL})


def coerce_status(status: Union[InquiryStatus, str, None]) -> Optional[InquiryStatus]:
    """Return the InquiryStatus for a status or display string, or None if unknown."""
    if isinstance(status, InquiryStatus):
        return status
    try:
        return InquiryStatus(status)
    except ValueError:
        return None


def validate_transition(current: Union[InquiryStatus, str], proposed: Union[InquiryStatus, str]) -> bool:
    """
    Check whether an inquiry may move from `current` to `proposed`.

    Unknown statuses, self-loops, and edges out of terminal statuses are all
    rejected.
    """
    current_status = coerce_status(current)
    proposed_status = coerce_status(proposed)
    if current_status is None or proposed_status is None:
        return False
    return proposed_status in VALID_TRANSITIONS[current_status]


def get_allowed_transitions(status: Union[InquiryStatus, str]) -> list[InquiryStatus]:
    """Statuses reachable in one step, in pipeline order."""
    current_status = coerce_status(status)
    if current_status is None:
        return []
    return list(VALID_TRANSITIONS[current_status])


def is_terminal_status(status: Union[InquiryStatus, str]) -> bool:
    """Successful and Cancelled inquiries accept no further transitions."""
    return coerce_status(status) in TERMINAL_STATUSES


def can_reassign_inquiry(status: Union[InquiryStatus, str]) -> bool:
    """Whether the assigned agent may be changed while the inquiry is in `status`."""
    return coerce_status(status) not in REASSIGNMENT_LOCKED_STATUSES
