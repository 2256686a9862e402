import fakeredis
import pytest

from loan_pipeline.infra.redis_infra import RedisLoanStore, RedisQueue

VERIFY_CHANNEL = "test:doc_verification"
ELIGIBILITY_CHANNEL = "test:eligibility"


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyQueue:
    """Wraps a queue; ``enqueue`` raises while ``fail_enqueue`` is set."""

    def __init__(self, queue):
        self.queue = queue
        self.fail_enqueue = False
        self.enqueued = []

    async def enqueue(self, channel, envelope):
        if self.fail_enqueue:
            raise ConnectionError("queue unavailable")
        self.enqueued.append((channel, envelope))
        await self.queue.enqueue(channel, envelope)

    async def receive_batch(self, channel, max_messages=10, wait_seconds=20):
        return await self.queue.receive_batch(channel, max_messages, wait_seconds)

    async def delete(self, channel, receipt):
        return await self.queue.delete(channel, receipt)


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.attempts = []

    async def publish(self, event):
        self.attempts.append(event)
        if self.fail:
            raise ConnectionError("notifier unavailable")
        return 1


@pytest.fixture
def redis_client():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(redis_client):
    return RedisLoanStore(redis_client, prefix="test-loan")


@pytest.fixture
def queue(redis_client, clock):
    return RedisQueue(redis_client, visibility_timeout=30, clock=clock)
