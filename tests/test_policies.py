import random
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from loan_pipeline.models import LoanRecord, LoanStatus
from loan_pipeline.policies import CeilingEligibilityPolicy, RandomVerificationPolicy, StaticPolicy


class FixedRandom(random.Random):
    def __init__(self, value):
        super().__init__()
        self.value = value

    def random(self):
        return self.value


def loan(amount):
    return LoanRecord(
        id=1,
        user_id=1,
        amount=Decimal(amount),
        address="1 Main St",
        status=LoanStatus.VERIFIED,
        created_at=datetime.now(timezone.utc),
    )


@pytest.mark.parametrize("roll", [0.0, 0.5, 0.99])
def test_ceiling_amount_always_rejected(roll):
    policy = CeilingEligibilityPolicy(max_amount=1_000_000, approval_rate=1.0, rng=FixedRandom(roll))
    decision = policy.evaluate(loan(1_000_000))
    assert not decision.passed
    assert decision.reason == "Loan amount exceeds maximum threshold"


def test_below_ceiling_depends_on_policy_roll():
    approve = CeilingEligibilityPolicy(max_amount=1_000_000, approval_rate=0.7, rng=FixedRandom(0.1))
    reject = CeilingEligibilityPolicy(max_amount=1_000_000, approval_rate=0.7, rng=FixedRandom(0.9))

    assert approve.evaluate(loan(999_999)).passed
    decision = reject.evaluate(loan(999_999))
    assert not decision.passed
    assert decision.reason == "Does not meet eligibility criteria"


def test_random_verification_policy():
    assert RandomVerificationPolicy(pass_rate=0.9, rng=FixedRandom(0.5)).evaluate(loan(10)).passed
    assert not RandomVerificationPolicy(pass_rate=0.9, rng=FixedRandom(0.95)).evaluate(loan(10)).passed


def test_static_policy():
    assert StaticPolicy(True).evaluate(loan(10)).passed
    decision = StaticPolicy(False, "missing payslip").evaluate(loan(10))
    assert not decision.passed
    assert decision.reason == "missing payslip"
