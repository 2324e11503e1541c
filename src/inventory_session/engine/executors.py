"""
Transaction execution engine.

Runs the submit-and-confirm workflow for one command intent: send through the
wallet, publish the pending hash, wait for the receipt, and turn whatever
happened into a ``TransactionOutcome``. There is no automatic retry and no
client-side confirmation timeout.
"""

import time
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from .events import EventBus, TransactionConfirmedEvent, TransactionFailedEvent, TransactionSubmittedEvent
from .exceptions import CommandInFlight, CommandRejected, ErrorKind, InventoryError
from ..adapters.evm.binding import ContractBinding
from ..schemas.bases import PendingTransaction, TransactionOutcome
from ..schemas.intents import CommandIntent

PendingKey = Tuple[int, Tuple[Any, ...]]


class TransactionExecutor:
    """
    Submits command intents and tracks the ones in flight.

    An identical command (same kind and arguments) submitted again for the
    same session generation while the first is still pending is rejected with
    ``CommandInFlight`` before it reaches the wallet.
    """

    def __init__(self, event_bus: EventBus, poll_interval: float = 2.0) -> None:
        """
        Initialize the executor.

        Args:
            event_bus: Bus that receives submitted / confirmed / failed events.
            poll_interval: Seconds between receipt polls.
        """
        self.event_bus = event_bus
        self.poll_interval = poll_interval
        self._pending: Dict[PendingKey, PendingTransaction] = {}

    @property
    def pending(self) -> List[PendingTransaction]:
        return list(self._pending.values())

    def is_pending(self, intent: CommandIntent, generation: int) -> bool:
        return (generation, intent.dedupe_key()) in self._pending

    async def submit(self, binding: ContractBinding, intent: CommandIntent, generation: int) -> TransactionOutcome:
        """
        Send ``intent`` and wait for it to be mined.

        Args:
            binding: Verified contract binding for the current session
            intent: Validated command intent
            generation: Session generation the command belongs to

        Returns:
            TransactionOutcome: Success with receipt data, or a classified failure.

        Raises:
            CommandInFlight: If an identical command is already pending.
        """
        key: PendingKey = (generation, intent.dedupe_key())
        if key in self._pending:
            logger.warning(f"Duplicate {intent.kind.value} rejected while pending: {intent.dedupe_key()}")
            raise CommandInFlight()

        pending = PendingTransaction(intent_kind=intent.kind.value, submitted_at=time.time(), generation=generation)
        self._pending[key] = pending
        started = time.monotonic()
        try:
            try:
                tx_hash = await binding.send(intent)
            except InventoryError as exc:
                return await self._failed(intent, exc)

            pending = pending.model_copy(update={"tx_hash": tx_hash})
            self._pending[key] = pending
            await self.event_bus.publish(TransactionSubmittedEvent(pending=pending))

            try:
                receipt = await binding.wait_for_receipt(tx_hash, poll_interval=self.poll_interval)
            except InventoryError as exc:
                return await self._failed(intent, exc, tx_hash=tx_hash)

            if receipt.get("status") != 1:
                return await self._failed(
                    intent,
                    CommandRejected(reason="Transaction reverted on-chain"),
                    tx_hash=tx_hash,
                    receipt=receipt,
                )

            outcome = TransactionOutcome(
                intent_kind=intent.kind.value,
                success=True,
                tx_hash=tx_hash,
                block_number=receipt.get("blockNumber"),
                gas_used=receipt.get("gasUsed"),
                execution_time=time.monotonic() - started,
                message=intent.success_message(),
            )
            logger.info(f"{intent.kind.value} confirmed in block {outcome.block_number}: {tx_hash}")
            await self.event_bus.publish(TransactionConfirmedEvent(outcome=outcome))
            return outcome
        finally:
            self._pending.pop(key, None)

    async def _failed(
        self,
        intent: CommandIntent,
        error: InventoryError,
        tx_hash: Optional[str] = None,
        receipt: Optional[Dict[str, Any]] = None,
    ) -> TransactionOutcome:
        outcome = TransactionOutcome(
            intent_kind=intent.kind.value,
            success=False,
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber") if receipt else None,
            gas_used=receipt.get("gasUsed") if receipt else None,
            error_kind=error.kind,
            message=error.message,
            needs_reverification=error.kind == ErrorKind.CONTRACT_UNREACHABLE,
        )
        logger.error(f"{intent.kind.value} failed ({error.kind.value}): {error.message}")
        await self.event_bus.publish(TransactionFailedEvent(outcome=outcome))
        return outcome
