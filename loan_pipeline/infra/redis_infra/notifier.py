import redis.asyncio as redis

from loan_pipeline import config
from loan_pipeline.models import NotificationEvent
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)


class RedisNotifier:
    """Fire-and-forget fan-out of loan events over Redis pub/sub."""

    def __init__(self, redis_client: redis.Redis, channel: str = ""):
        self.redis = redis_client
        self.channel = channel or config.LOAN_APPROVED_CHANNEL

    async def publish(self, event: NotificationEvent) -> int:
        receivers = await self.redis.publish(self.channel, event.to_json())
        logger.info(f"Published {event.status.value} event for loan {event.loan_id} to {receivers} subscriber(s)")
        return receivers
