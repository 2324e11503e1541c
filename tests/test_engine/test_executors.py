"""
Transaction executor tests: submit / confirm / fail workflow and in-flight de-duplication.
"""

import asyncio

import pytest

from test_mocks import MOCK_TX_HASH, EventRecorder, FakeBinding, wait_until

from inventory_session.engine.events import (
    EventBus,
    TransactionConfirmedEvent,
    TransactionFailedEvent,
    TransactionSubmittedEvent,
)
from inventory_session.engine.exceptions import CommandInFlight, CommandRejected, ContractUnreachable, ErrorKind
from inventory_session.engine.executors import TransactionExecutor
from inventory_session.schemas.intents import UpdateStockIntent


def stock_intent(delta=5):
    return UpdateStockIntent(item_id=1, delta=delta)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorder(bus):
    return EventRecorder(bus, TransactionSubmittedEvent, TransactionConfirmedEvent, TransactionFailedEvent)


class TestSubmit:

    @pytest.mark.asyncio
    async def test_confirmed(self, bus, recorder):
        executor = TransactionExecutor(bus, poll_interval=0)

        outcome = await executor.submit(FakeBinding(), stock_intent(), generation=1)

        assert outcome.success
        assert outcome.tx_hash == MOCK_TX_HASH
        assert outcome.gas_used == 50000
        assert outcome.execution_time >= 0
        assert outcome.message == "Stock updated successfully!"
        assert [type(event) for event in recorder.events] == [TransactionSubmittedEvent, TransactionConfirmedEvent]
        assert recorder.of(TransactionSubmittedEvent)[0].pending.tx_hash == MOCK_TX_HASH
        assert executor.pending == []

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, bus, recorder):
        executor = TransactionExecutor(bus)
        binding = FakeBinding(receipt={"status": 0, "blockNumber": 7, "gasUsed": 30000})

        outcome = await executor.submit(binding, stock_intent(), generation=1)

        assert not outcome.success
        assert outcome.error_kind == ErrorKind.COMMAND_REJECTED
        assert outcome.message == "Transaction failed: Transaction reverted on-chain"
        assert outcome.tx_hash == MOCK_TX_HASH
        assert outcome.block_number == 7
        assert len(recorder.of(TransactionFailedEvent)) == 1

    @pytest.mark.asyncio
    async def test_rejected_before_hash(self, bus, recorder):
        executor = TransactionExecutor(bus)
        binding = FakeBinding(send_error=CommandRejected(reason="User rejected the request"))

        outcome = await executor.submit(binding, stock_intent(), generation=1)

        assert not outcome.success
        assert outcome.tx_hash is None
        assert outcome.message == "Transaction failed: User rejected the request"
        assert recorder.of(TransactionSubmittedEvent) == []
        assert executor.pending == []

    @pytest.mark.asyncio
    async def test_unreachable_flags_reverification(self, bus):
        executor = TransactionExecutor(bus)
        binding = FakeBinding(send_error=ContractUnreachable())

        outcome = await executor.submit(binding, stock_intent(), generation=1)

        assert outcome.error_kind == ErrorKind.CONTRACT_UNREACHABLE
        assert outcome.needs_reverification


class TestInFlight:

    @pytest.mark.asyncio
    async def test_identical_command_rejected_while_pending(self, bus):
        executor = TransactionExecutor(bus)
        binding = FakeBinding()
        binding.send_gate = asyncio.Event()

        first = asyncio.create_task(executor.submit(binding, stock_intent(), generation=1))
        await wait_until(lambda: executor.is_pending(stock_intent(), 1))

        with pytest.raises(CommandInFlight):
            await executor.submit(binding, stock_intent(), generation=1)

        binding.send_gate.set()
        assert (await first).success
        assert not executor.is_pending(stock_intent(), 1)
        assert len(binding.sent) == 1

    @pytest.mark.asyncio
    async def test_different_arguments_are_not_duplicates(self, bus):
        executor = TransactionExecutor(bus)
        binding = FakeBinding()
        binding.send_gate = asyncio.Event()

        first = asyncio.create_task(executor.submit(binding, stock_intent(5), generation=1))
        second = asyncio.create_task(executor.submit(binding, stock_intent(6), generation=1))
        await wait_until(lambda: len(binding.sent) == 2)
        binding.send_gate.set()

        outcomes = await asyncio.gather(first, second)
        assert all(outcome.success for outcome in outcomes)

    @pytest.mark.asyncio
    async def test_new_generation_is_not_a_duplicate(self, bus):
        executor = TransactionExecutor(bus)
        binding = FakeBinding()
        binding.send_gate = asyncio.Event()

        first = asyncio.create_task(executor.submit(binding, stock_intent(), generation=1))
        await wait_until(lambda: len(binding.sent) == 1)
        second = asyncio.create_task(executor.submit(binding, stock_intent(), generation=2))
        await wait_until(lambda: len(binding.sent) == 2)
        binding.send_gate.set()

        await asyncio.gather(first, second)
        assert executor.pending == []
