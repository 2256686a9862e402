import pytest

from conftest import VERIFY_CHANNEL, FlakyQueue
from loan_pipeline.app.producer import LoanProducer
from loan_pipeline.models import Action, LoanStatus, MessageEnvelope


@pytest.mark.asyncio
async def test_submit_creates_record_and_queues_verification(store, queue):
    producer = LoanProducer(store, queue, channel=VERIFY_CHANNEL)

    loan = await producer.submit(user_id=3, amount=250000, address="1 Main St")

    assert (await store.get(loan.id)).status is LoanStatus.PENDING_VERIFICATION
    [message] = await queue.receive_batch(VERIFY_CHANNEL, wait_seconds=0)
    envelope = MessageEnvelope.from_json(message.body)
    assert envelope.loan_id == loan.id
    assert envelope.user_id == 3
    assert envelope.action is Action.VERIFY_DOCUMENTS


@pytest.mark.asyncio
async def test_submit_survives_enqueue_failure(store, queue):
    flaky = FlakyQueue(queue)
    flaky.fail_enqueue = True
    producer = LoanProducer(store, flaky, channel=VERIFY_CHANNEL)

    loan = await producer.submit(user_id=3, amount=1000, address="1 Main St")

    assert (await store.get(loan.id)).status is LoanStatus.PENDING_VERIFICATION
    assert await queue.receive_batch(VERIFY_CHANNEL, wait_seconds=0) == []


@pytest.mark.asyncio
async def test_submit_rejects_invalid_amount(store, queue):
    producer = LoanProducer(store, queue, channel=VERIFY_CHANNEL)
    with pytest.raises(ValueError):
        await producer.submit(user_id=3, amount=0, address="1 Main St")
    assert await queue.receive_batch(VERIFY_CHANNEL, wait_seconds=0) == []
