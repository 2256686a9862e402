import time
import uuid
from typing import Callable, List, Union

import redis.asyncio as redis

from loan_pipeline import config
from loan_pipeline.models import MessageEnvelope, ReceivedMessage
from loan_pipeline.utils import get_logger

logger = get_logger(__name__)

# KEYS: claimed, channel, bodies, inflight
# ARGV: max messages, visibility deadline, one receipt per message
RECEIVE_SCRIPT = """
local result = {}
local limit = tonumber(ARGV[1])
for i = 1, limit do
    local body = redis.call('LPOP', KEYS[1])
    if not body then
        body = redis.call('LPOP', KEYS[2])
    end
    if not body then
        break
    end
    local receipt = ARGV[2 + i]
    redis.call('HSET', KEYS[3], receipt, body)
    redis.call('ZADD', KEYS[4], ARGV[2], receipt)
    table.insert(result, receipt)
    table.insert(result, body)
end
return result
"""

# KEYS: inflight, bodies, channel
# ARGV: now
REQUEUE_SCRIPT = """
local expired = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1])
local requeued = 0
for _, receipt in ipairs(expired) do
    redis.call('ZREM', KEYS[1], receipt)
    local body = redis.call('HGET', KEYS[2], receipt)
    if body then
        redis.call('RPUSH', KEYS[3], body)
        redis.call('HDEL', KEYS[2], receipt)
        requeued = requeued + 1
    end
end
return requeued
"""


class RedisQueue:
    """At-least-once message channels on top of Redis lists.

    A channel is a list of JSON bodies. Receiving a message moves it
    in-flight: the body is parked in ``{channel}:bodies`` under a fresh
    receipt and the receipt is scored by its visibility deadline in
    ``{channel}:inflight``. Deleting the receipt acknowledges the message.
    A receipt still in-flight after its deadline is pushed back onto the
    channel on the next receive, by whichever consumer gets there first.

    Both moves run as server-side scripts, so a message is always either
    on the channel or in-flight. A long poll parks the message it wakes on
    in ``{channel}:claimed`` with ``BLMOVE``; the receive script drains that
    list before the channel, so a claim whose tracking step failed is
    picked up by the next receive.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        visibility_timeout: float = None,
        clock: Callable[[], float] = time.time,
    ):
        self.redis = redis_client
        self.visibility_timeout = (
            config.VISIBILITY_TIMEOUT_SECONDS if visibility_timeout is None else visibility_timeout
        )
        self.clock = clock
        self._receive = redis_client.register_script(RECEIVE_SCRIPT)
        self._requeue = redis_client.register_script(REQUEUE_SCRIPT)

    @staticmethod
    def _inflight_key(channel: str) -> str:
        return f"{channel}:inflight"

    @staticmethod
    def _bodies_key(channel: str) -> str:
        return f"{channel}:bodies"

    @staticmethod
    def _claimed_key(channel: str) -> str:
        return f"{channel}:claimed"

    async def enqueue(self, channel: str, envelope: Union[MessageEnvelope, str]) -> None:
        body = envelope.to_json() if isinstance(envelope, MessageEnvelope) else envelope
        await self.redis.rpush(channel, body)
        logger.info(f"Message sent to {channel}: {body}")

    async def receive_batch(self, channel: str, max_messages: int = 10, wait_seconds: int = 20) -> List[ReceivedMessage]:
        """Return up to ``max_messages`` messages, blocking up to ``wait_seconds`` when the channel is empty."""
        await self.requeue_expired(channel)

        messages = await self._take(channel, max_messages)
        if not messages and wait_seconds > 0:
            claimed = await self.redis.blmove(
                channel, self._claimed_key(channel), wait_seconds, "LEFT", "RIGHT"
            )
            if claimed is not None:
                messages = await self._take(channel, max_messages)
        return messages

    async def _take(self, channel: str, max_messages: int) -> List[ReceivedMessage]:
        deadline = self.clock() + self.visibility_timeout
        receipts = [uuid.uuid4().hex for _ in range(max_messages)]
        flat = await self._receive(
            keys=[self._claimed_key(channel), channel, self._bodies_key(channel), self._inflight_key(channel)],
            args=[max_messages, deadline, *receipts],
        )
        return [ReceivedMessage(body=body, receipt=receipt) for receipt, body in zip(flat[::2], flat[1::2])]

    async def delete(self, channel: str, receipt: str) -> bool:
        """Acknowledge a received message. False if the receipt is unknown or was already requeued."""
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.zrem(self._inflight_key(channel), receipt)
            pipe.hdel(self._bodies_key(channel), receipt)
            removed, _ = await pipe.execute()
        if not removed:
            logger.warning(f"Receipt {receipt} on {channel} is no longer in flight")
        return bool(removed)

    async def requeue_expired(self, channel: str) -> int:
        """Push every message whose visibility deadline has passed back onto the channel."""
        requeued = await self._requeue(
            keys=[self._inflight_key(channel), self._bodies_key(channel), channel],
            args=[self.clock()],
        )
        if requeued:
            logger.info(f"Requeued {requeued} expired message(s) on {channel}")
        return requeued

    async def depth(self, channel: str) -> int:
        """Number of messages waiting on the channel (in-flight ones excluded)."""
        return await self.redis.llen(channel)
