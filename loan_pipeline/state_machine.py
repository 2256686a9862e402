"""Loan status graph.

    PENDING_VERIFICATION -> VERIFIED | VERIFICATION_FAILED
    VERIFIED             -> APPROVED | REJECTED

Every other status is terminal. Nothing moves backward or sideways.
"""

from typing import Dict, FrozenSet

from loan_pipeline.errors import InvalidTransitionError
from loan_pipeline.models import LoanStatus

TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.PENDING_VERIFICATION: frozenset({LoanStatus.VERIFIED, LoanStatus.VERIFICATION_FAILED}),
    LoanStatus.VERIFIED: frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED}),
}

INITIAL_STATUS = LoanStatus.PENDING_VERIFICATION


def can_transition(source: LoanStatus, target: LoanStatus) -> bool:
    return target in TRANSITIONS.get(source, frozenset())


def check_transition(source: LoanStatus, target: LoanStatus) -> None:
    if not can_transition(source, target):
        raise InvalidTransitionError(source, target)


def is_terminal(status: LoanStatus) -> bool:
    return not TRANSITIONS.get(status)


def has_advanced_past(current: LoanStatus, stage_source: LoanStatus) -> bool:
    """True if ``current`` is reachable from ``stage_source`` by one or more transitions."""
    frontier = set(TRANSITIONS.get(stage_source, ()))
    seen = set()
    while frontier:
        status = frontier.pop()
        if status == current:
            return True
        seen.add(status)
        frontier |= set(TRANSITIONS.get(status, ())) - seen
    return False
