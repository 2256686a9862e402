import traceback
from typing import Optional

from loan_pipeline import config
from loan_pipeline.app.worker import QueueWorker
from loan_pipeline.errors import InvalidLoanStateError, LoanNotFoundError
from loan_pipeline.models import Action, Decision, LoanStatus, MessageEnvelope, NotificationEvent
from loan_pipeline.policies import EligibilityPolicy
from loan_pipeline.state_machine import has_advanced_past
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class EligibilityWorker(QueueWorker):
    """Consumes CHECK_ELIGIBILITY messages.

    Moves VERIFIED loans to APPROVED or REJECTED. Approvals are announced
    through the notifier; a failed announcement is logged and does not
    affect the loan or the message.
    """

    action = Action.CHECK_ELIGIBILITY

    def __init__(self, store, queue, policy: EligibilityPolicy, notifier=None, channel: str = "", **kwargs):
        super().__init__(store, queue, channel or config.ELIGIBILITY_QUEUE_NAME, **kwargs)
        self.policy = policy
        self.notifier = notifier

    async def handle(self, envelope: MessageEnvelope) -> None:
        loan = await self.store.get(envelope.loan_id)
        if loan is None:
            raise LoanNotFoundError(envelope.loan_id)

        if loan.amount is None or loan.amount <= 0:
            raise InvalidLoanStateError(f"Invalid loan amount for loan {loan.id}: {loan.amount}")

        if loan.status != LoanStatus.VERIFIED:
            if has_advanced_past(loan.status, LoanStatus.VERIFIED):
                logger.warning(f"Loan {loan.id} is already {loan.status.value}, eligibility not repeated")
                return
            raise InvalidLoanStateError(f"Loan {loan.id} is {loan.status.value}, cannot check eligibility")

        decision = self.policy.evaluate(loan)
        new_status = LoanStatus.APPROVED if decision.passed else LoanStatus.REJECTED

        if not await self.store.compare_and_set_status(loan.id, LoanStatus.VERIFIED, new_status):
            logger.warning(f"Loan {loan.id} was decided concurrently, skipping")
            return

        logger.info(f"Loan {loan.id} status updated to {new_status.value} ({decision.reason})")

        if new_status == LoanStatus.APPROVED:
            await self._notify(envelope, decision)

    async def _notify(self, envelope: MessageEnvelope, decision: Decision) -> Optional[bool]:
        if self.notifier is None:
            return None

        event = NotificationEvent(
            loan_id=envelope.loan_id,
            user_id=envelope.user_id,
            status=LoanStatus.APPROVED,
            reason=decision.reason,
        )
        try:
            await self.notifier.publish(event)
            logger.info(f"Published approval notification for loan {envelope.loan_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to publish notification for loan {envelope.loan_id}: {e}")
            logger.error(f"Traceback:\n{traceback.format_exc()}")
            return False
