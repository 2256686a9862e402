from loan_pipeline import config
from loan_pipeline.app.worker import QueueWorker
from loan_pipeline.errors import InvalidLoanStateError, LoanNotFoundError
from loan_pipeline.models import Action, LoanRecord, LoanStatus, MessageEnvelope
from loan_pipeline.policies import VerificationPolicy
from loan_pipeline.state_machine import has_advanced_past
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class VerificationWorker(QueueWorker):
    """Consumes VERIFY_DOCUMENTS messages.

    Moves PENDING_VERIFICATION loans to VERIFIED or VERIFICATION_FAILED and
    queues verified loans for the eligibility check.
    """

    action = Action.VERIFY_DOCUMENTS

    def __init__(self, store, queue, policy: VerificationPolicy, channel: str = "", next_channel: str = "", **kwargs):
        super().__init__(store, queue, channel or config.DOC_VERIFICATION_QUEUE_NAME, **kwargs)
        self.policy = policy
        self.next_channel = next_channel or config.ELIGIBILITY_QUEUE_NAME

    async def handle(self, envelope: MessageEnvelope) -> None:
        loan = await self.store.get(envelope.loan_id)
        if loan is None:
            raise LoanNotFoundError(envelope.loan_id)

        if loan.status == LoanStatus.PENDING_VERIFICATION:
            status = await self._verify(loan)
        elif has_advanced_past(loan.status, LoanStatus.PENDING_VERIFICATION):
            logger.warning(f"Loan {loan.id} is already {loan.status.value}, verification not repeated")
            status = loan.status
        else:
            raise InvalidLoanStateError(f"Loan {loan.id} is {loan.status.value}, cannot verify documents")

        if status == LoanStatus.VERIFIED:
            await self._hand_off(loan, envelope)
        elif status == LoanStatus.VERIFICATION_FAILED:
            logger.warning(f"Document verification failed for loan {loan.id}")

    async def _verify(self, loan: LoanRecord) -> LoanStatus:
        decision = self.policy.evaluate(loan)
        new_status = LoanStatus.VERIFIED if decision.passed else LoanStatus.VERIFICATION_FAILED
        logger.info(
            f"Document verification result for loan {loan.id}: "
            f"{'PASSED' if decision.passed else 'FAILED'} ({decision.reason})"
        )

        if await self.store.compare_and_set_status(loan.id, LoanStatus.PENDING_VERIFICATION, new_status):
            logger.info(f"Loan {loan.id} status updated to {new_status.value}")
            return new_status

        # another consumer got there first, its outcome stands
        current = await self.store.get_status(loan.id)
        if current is None:
            raise LoanNotFoundError(loan.id)
        logger.warning(f"Loan {loan.id} was moved to {current.value} concurrently, keeping it")
        return current

    async def _hand_off(self, loan: LoanRecord, envelope: MessageEnvelope) -> None:
        """Queue the eligibility check unless an earlier delivery already did."""
        if await self.store.has_handoff(loan.id, Action.CHECK_ELIGIBILITY):
            logger.info(f"Loan {loan.id} already sent to eligibility queue")
            return

        next_envelope = MessageEnvelope(
            loan_id=loan.id,
            user_id=envelope.user_id,
            action=Action.CHECK_ELIGIBILITY,
        )
        try:
            await self.queue.enqueue(self.next_channel, next_envelope)
        except Exception as e:
            logger.error(f"Failed to send eligibility message for loan {loan.id}: {e}")
            raise

        await self.store.mark_handoff(loan.id, Action.CHECK_ELIGIBILITY)
        logger.info(f"Document verified for loan {loan.id}, sent to eligibility queue")
