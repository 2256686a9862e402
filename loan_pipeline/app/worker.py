import traceback
from typing import Optional

from loan_pipeline import config
from loan_pipeline.errors import MalformedMessageError, PermanentMessageError
from loan_pipeline.models import Action, MessageEnvelope, ReceivedMessage
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class QueueWorker:
    """Consumer for one channel.

    Each received message is parsed and handed to ``handle``. The message
    is deleted when ``handle`` returns or raises a ``PermanentMessageError``;
    any other exception leaves it in flight so the queue redelivers it
    after the visibility timeout. ``handle`` must therefore be safe to run
    more than once for the same message.
    """

    action: Optional[Action] = None

    def __init__(self, store, queue, channel: str, batch_size: int = None, wait_seconds: int = None):
        self.store = store
        self.queue = queue
        self.channel = channel
        self.batch_size = config.RECEIVE_BATCH_SIZE if batch_size is None else batch_size
        self.wait_seconds = config.RECEIVE_WAIT_SECONDS if wait_seconds is None else wait_seconds

    def parse(self, message: ReceivedMessage) -> MessageEnvelope:
        envelope = MessageEnvelope.from_json(message.body)
        if envelope.action != self.action:
            raise MalformedMessageError(f"Unknown action: {envelope.action.value}")
        return envelope

    async def handle(self, envelope: MessageEnvelope) -> None:
        raise NotImplementedError

    async def poll_once(self) -> int:
        """Receive one batch and process it in order. Receive errors propagate to the caller."""
        messages = await self.queue.receive_batch(self.channel, self.batch_size, self.wait_seconds)
        if not messages:
            logger.debug(f"No messages received from {self.channel}")
            return 0

        logger.info(f"Received {len(messages)} messages from {self.channel}")
        for message in messages:
            await self.process_message(message)
        return len(messages)

    async def process_message(self, message: ReceivedMessage) -> bool:
        """Returns True if the message was settled (deleted or dropped), False if left for redelivery."""
        try:
            envelope = self.parse(message)
            logger.info(f"Processing message: loan {envelope.loan_id}, action {envelope.action.value}")
            await self.handle(envelope)
        except PermanentMessageError as e:
            logger.warning(f"Dropping message {message.receipt}: {e}")
        except Exception as e:
            logger.error(f"Error processing message {message.receipt}, leaving it for redelivery: {e}")
            logger.error(f"Traceback:\n{traceback.format_exc()}")
            return False

        await self._delete(message)
        return True

    async def _delete(self, message: ReceivedMessage) -> None:
        try:
            await self.queue.delete(self.channel, message.receipt)
            logger.info("Message deleted from queue")
        except Exception as e:
            # not fatal: the message comes back after the visibility timeout and is a no-op then
            logger.error(f"Error deleting message from queue: {e}")
