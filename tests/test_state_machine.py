import itertools

import pytest

from loan_pipeline.errors import InvalidTransitionError
from loan_pipeline.models import LoanStatus
from loan_pipeline.state_machine import (
    TRANSITIONS,
    can_transition,
    check_transition,
    has_advanced_past,
    is_terminal,
)

S = LoanStatus


def test_declared_transitions():
    assert can_transition(S.PENDING_VERIFICATION, S.VERIFIED)
    assert can_transition(S.PENDING_VERIFICATION, S.VERIFICATION_FAILED)
    assert can_transition(S.VERIFIED, S.APPROVED)
    assert can_transition(S.VERIFIED, S.REJECTED)


def test_no_skips_reversals_or_self_loops():
    legal = {(src, dst) for src, targets in TRANSITIONS.items() for dst in targets}
    for src, dst in itertools.product(S, S):
        if (src, dst) not in legal:
            assert not can_transition(src, dst), f"{src} -> {dst}"

    assert not can_transition(S.PENDING_VERIFICATION, S.APPROVED)
    assert not can_transition(S.VERIFIED, S.PENDING_VERIFICATION)


@pytest.mark.parametrize("status", [S.VERIFICATION_FAILED, S.APPROVED, S.REJECTED])
def test_terminal_states(status):
    assert is_terminal(status)


def test_check_transition_raises():
    with pytest.raises(InvalidTransitionError):
        check_transition(S.APPROVED, S.REJECTED)


def test_has_advanced_past():
    assert has_advanced_past(S.APPROVED, S.PENDING_VERIFICATION)
    assert has_advanced_past(S.VERIFICATION_FAILED, S.PENDING_VERIFICATION)
    assert has_advanced_past(S.REJECTED, S.VERIFIED)
    assert not has_advanced_past(S.VERIFIED, S.VERIFIED)
    assert not has_advanced_past(S.VERIFICATION_FAILED, S.VERIFIED)
    assert not has_advanced_past(S.PENDING_VERIFICATION, S.VERIFIED)
