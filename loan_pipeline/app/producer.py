from loan_pipeline import config
from loan_pipeline.models import Action, LoanRecord, MessageEnvelope
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class LoanProducer:
    """Creates loan records and starts them down the pipeline."""

    def __init__(self, store, queue, channel: str = ""):
        self.store = store
        self.queue = queue
        self.channel = channel or config.DOC_VERIFICATION_QUEUE_NAME

    async def submit(self, user_id: int, amount, address: str) -> LoanRecord:
        """Create the loan and queue it for document verification.

        The record is returned even when the verification message cannot be
        sent. Such a loan stays PENDING_VERIFICATION with nothing queued for it.
        """
        logger.info(f"Creating loan for user: {user_id}, amount: {amount}")
        loan = await self.store.create(user_id, amount, address)

        envelope = MessageEnvelope(loan_id=loan.id, user_id=user_id, action=Action.VERIFY_DOCUMENTS)
        try:
            await self.queue.enqueue(self.channel, envelope)
        except Exception as e:
            logger.error(f"Failed to send verification message, but loan {loan.id} created: {e}")

        logger.info(f"Loan created successfully: {loan.id}")
        return loan
