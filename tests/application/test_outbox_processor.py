import asyncio
from datetime import timedelta

from domain.common.entity import utcnow
from domain.outbox.entity import OutboxMessage
from infrastructure.outbox.processor import OutboxProcessor
from tests.fakes import RecordingPublisher


def _seed(store, *types):
    start = utcnow()
    messages = []
    for offset, event_type in enumerate(types):
        message = OutboxMessage(type=event_type, content=f'{{"n":{offset}}}', occurred_on=start + timedelta(seconds=offset))
        store.outbox[message.id] = message
        messages.append(message)
    return messages


async def test_publishes_in_occurrence_order_and_marks_processed(store):
    messages = _seed(store, "PaymentSucceeded", "OrderPaid")
    publisher = RecordingPublisher()
    processor = OutboxProcessor(store.uow_factory, publisher)

    assert await processor.process_batch() == 2
    assert [t for t, _ in publisher.published] == ["PaymentSucceeded", "OrderPaid"]
    assert all(store.outbox[m.id].is_processed for m in messages)

    assert await processor.process_batch() == 0
    assert len(publisher.published) == 2


async def test_failed_message_records_error_and_is_retried(store):
    ok, bad = _seed(store, "PaymentSucceeded", "OrderPaid")
    publisher = RecordingPublisher(fail_types={"OrderPaid"})
    processor = OutboxProcessor(store.uow_factory, publisher)

    assert await processor.process_batch() == 1
    failed = store.outbox[bad.id]
    assert not failed.is_processed
    assert failed.retry_count == 1
    assert "RuntimeError" in failed.error
    assert "sink rejected OrderPaid" in failed.error
    assert store.outbox[ok.id].is_processed

    publisher.fail_types.clear()
    assert await processor.process_batch() == 1
    assert store.outbox[bad.id].is_processed
    assert store.outbox[bad.id].retry_count == 1


async def test_batch_size_and_retry_cap(store):
    _seed(store, "A", "B", "C")
    publisher = RecordingPublisher(fail_types={"A"})
    processor = OutboxProcessor(store.uow_factory, publisher, batch_size=2, max_retries=1)

    assert await processor.process_batch() == 1
    assert [t for t, _ in publisher.published] == ["B"]
    assert await processor.process_batch() == 1
    assert [t for t, _ in publisher.published] == ["B", "C"]
    assert await processor.process_batch() == 0


async def test_concurrent_processors_do_not_share_rows(store):
    _seed(store, *[f"E{i}" for i in range(6)])
    publisher = RecordingPublisher()
    first = OutboxProcessor(store.uow_factory, publisher, batch_size=3)
    second = OutboxProcessor(store.uow_factory, publisher, batch_size=3)

    counts = await asyncio.gather(first.process_batch(), second.process_batch())

    assert sum(counts) == 6
    assert sorted(t for t, _ in publisher.published) == [f"E{i}" for i in range(6)]


async def test_background_loop_start_and_stop(store):
    _seed(store, "OrderPaid")
    publisher = RecordingPublisher()
    processor = OutboxProcessor(store.uow_factory, publisher, interval=0.01)

    processor.start()
    assert processor.running
    for _ in range(100):
        if publisher.published:
            break
        await asyncio.sleep(0.01)
    await processor.stop()

    assert not processor.running
    assert publisher.published == [("OrderPaid", '{"n":0}')]


async def test_background_loop_waits_one_interval_before_first_cycle(store):
    _seed(store, "OrderPaid")
    publisher = RecordingPublisher()
    processor = OutboxProcessor(store.uow_factory, publisher, interval=10)

    processor.start()
    await asyncio.sleep(0.05)
    assert publisher.published == []

    await processor.stop()
    assert not processor.running
    assert publisher.published == []
