"""Decision policies used by the workers.

The workers only care that ``evaluate(loan)`` returns a ``Decision``. The
random policies below are stand-ins for real document and eligibility
rules and can be swapped for anything with the same method.
"""

import random
from decimal import Decimal
from typing import Optional

from loan_pipeline import config
from loan_pipeline.models import Decision, LoanRecord
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class VerificationPolicy:
    def evaluate(self, loan: LoanRecord) -> Decision:
        raise NotImplementedError


class EligibilityPolicy:
    def evaluate(self, loan: LoanRecord) -> Decision:
        raise NotImplementedError


class StaticPolicy(VerificationPolicy, EligibilityPolicy):
    """Always returns the same decision."""

    def __init__(self, passed: bool, reason: str = ""):
        self.decision = Decision(passed=passed, reason=reason or ("Passed" if passed else "Failed"))

    def evaluate(self, loan: LoanRecord) -> Decision:
        return self.decision


class RandomVerificationPolicy(VerificationPolicy):
    """Mock document verification: passes with probability ``pass_rate``."""

    def __init__(self, pass_rate: float = None, rng: Optional[random.Random] = None):
        self.pass_rate = config.VERIFICATION_PASS_RATE if pass_rate is None else pass_rate
        self.rng = rng or random.Random()

    def evaluate(self, loan: LoanRecord) -> Decision:
        logger.info(f"Verifying documents for loan {loan.id}")
        if self.rng.random() < self.pass_rate:
            return Decision(passed=True, reason="Documents verified")
        return Decision(passed=False, reason="Document verification failed")


class CeilingEligibilityPolicy(EligibilityPolicy):
    """Rejects any amount at or above ``max_amount``; otherwise approves with probability ``approval_rate``."""

    def __init__(self, max_amount=None, approval_rate: float = None, rng: Optional[random.Random] = None):
        self.max_amount = Decimal(str(config.MAX_LOAN_AMOUNT if max_amount is None else max_amount))
        self.approval_rate = config.ELIGIBILITY_APPROVAL_RATE if approval_rate is None else approval_rate
        self.rng = rng or random.Random()

    def evaluate(self, loan: LoanRecord) -> Decision:
        if loan.amount >= self.max_amount:
            return Decision(passed=False, reason="Loan amount exceeds maximum threshold")
        if self.rng.random() < self.approval_rate:
            return Decision(passed=True, reason="Approved based on eligibility rules")
        return Decision(passed=False, reason="Does not meet eligibility criteria")
