"""
Session controller.

Owns the single live ``Session`` and drives the connection lifecycle:

    Disconnected -> Connecting -> {Connected, VerificationFailed}

``Connecting -> Connected`` requires, in order: accounts obtained, network
reconciled, contract verified, permission tier resolved. Every provider
account or chain change, and every explicit connect / disconnect / network
switch, is a *reset*: a fresh Session with ``generation + 1`` that passes
through Connecting and re-derives everything. The previous binding is
dropped and never reused.

All session mutations run inside one serialized worker fed by an
``asyncio.Queue``. Provider callbacks only enqueue messages; an incoming reset
also cancels the connection attempt it supersedes. Consecutive queued resets
are coalesced into a single reconnection.

Business operations (commands and refreshes) are only dispatched while the
session is Connected and the contract is verified for the current
``(address, chain_id, signer)`` triple.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from loguru import logger

from .events import (
    AccountsChangedEvent,
    BaseEvent,
    EventBus,
    ItemsRefreshedEvent,
    OrdersRefreshedEvent,
    SessionChangedEvent,
    StatsRefreshedEvent,
    StatusEvent,
)
from .exceptions import (
    ErrorKind,
    InvalidTransition,
    InventoryError,
    NoProviderInstalled,
    ProviderRpcError,
    QueryFailed,
    SessionNotReady,
    ValidationError,
    VerificationError,
)
from .executors import TransactionExecutor
from .permissions import PermissionGate
from ..adapters.evm.binding import ContractBinding
from ..adapters.evm.constants import (
    CUSTOM_NETWORK_NAME,
    NetworkConfig,
    get_contract_address_from_env,
    normalize_contract_address,
)
from ..adapters.evm.networks import NetworkReconciler
from ..adapters.evm.verifies import ContractVerifier
from ..adapters.provider import ProviderGateway
from ..schemas.bases import (
    CapabilitySet,
    ConnectionState,
    ContractInspection,
    ContractStats,
    InventorySnapshot,
    OrderSnapshot,
    OrderStatus,
    PermissionTier,
    Session,
    StatusLevel,
    SupplierInfo,
    TransactionOutcome,
)
from ..schemas.intents import CommandIntent, IntentKind, PlaceOrderIntent, parse_intent

BindingFactory = Callable[[str, int], ContractBinding]

_ALLOWED_TRANSITIONS: Dict[ConnectionState, Set[ConnectionState]] = {
    ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
    ConnectionState.CONNECTING: {
        ConnectionState.CONNECTED,
        ConnectionState.VERIFICATION_FAILED,
        ConnectionState.DISCONNECTED,
    },
    ConnectionState.CONNECTED: {ConnectionState.DISCONNECTED, ConnectionState.VERIFICATION_FAILED},
    ConnectionState.VERIFICATION_FAILED: {ConnectionState.CONNECTING, ConnectionState.DISCONNECTED},
}

# Operation kinds handled by the worker
CONNECT = "connect"          # reset, prompting the wallet for accounts
RECONNECT = "reconnect"      # reset, using already exposed accounts
DISCONNECT = "disconnect"    # reset, settling in Disconnected
VERIFY = "verify"            # re-run contract verification for the live binding

_RESETS = (CONNECT, RECONNECT, DISCONNECT)


@dataclass
class _Operation:
    kind: str
    waiters: List[asyncio.Future] = field(default_factory=list)
    events: List[BaseEvent] = field(default_factory=list)

    @property
    def is_reset(self) -> bool:
        return self.kind in _RESETS

    def absorb(self, earlier: "_Operation") -> "_Operation":
        """Merge an earlier queued reset into this one."""
        kind = self.kind
        if kind == RECONNECT and earlier.kind == CONNECT:
            kind = CONNECT
        return _Operation(
            kind=kind,
            waiters=earlier.waiters + self.waiters,
            events=earlier.events + self.events,
        )


class SessionController:
    """
    Connection, verification and command orchestration for one wallet session.

    Args:
        gateway: Provider gateway wrapping the injected wallet
        contract_address: Inventory contract address. Defaults to
            ``INVENTORY_CONTRACT_ADDRESS`` or the public deployment.
        event_bus: Bus the render surface subscribes to
        reconciler: Network reconciler (built from ``gateway`` if omitted)
        verifier: Contract verifier (built from ``gateway`` if omitted)
        executor: Transaction executor (built on ``event_bus`` if omitted)
        binding_factory: ``(signer, chain_id) -> ContractBinding``
        auto_refresh: Load items, orders and statistics after each successful connect
        poll_interval: Seconds between receipt polls
    """

    def __init__(
        self,
        gateway: ProviderGateway,
        contract_address: Optional[str] = None,
        event_bus: Optional[EventBus] = None,
        reconciler: Optional[NetworkReconciler] = None,
        verifier: Optional[ContractVerifier] = None,
        executor: Optional[TransactionExecutor] = None,
        binding_factory: Optional[BindingFactory] = None,
        auto_refresh: bool = True,
        poll_interval: float = 2.0,
    ) -> None:
        self.gateway = gateway
        self.contract_address = (
            normalize_contract_address(contract_address) if contract_address else get_contract_address_from_env()
        )
        self.event_bus = event_bus or EventBus()
        self.reconciler = reconciler or NetworkReconciler(gateway)
        self.verifier = verifier or ContractVerifier(gateway)
        self.executor = executor or TransactionExecutor(self.event_bus, poll_interval=poll_interval)
        self._binding_factory = binding_factory or self._default_binding
        self.auto_refresh = auto_refresh

        self._session = Session()
        self._binding: Optional[ContractBinding] = None
        self._items: Optional[InventorySnapshot] = None
        self._orders: Optional[OrderSnapshot] = None
        self._stats: Optional[Tuple[int, ContractStats]] = None

        self._queue: "asyncio.Queue[_Operation]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self._establish_task: Optional[asyncio.Task] = None
        self._carried_waiters: List[asyncio.Future] = []
        self._background: Set[asyncio.Task] = set()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def _default_binding(self, signer: str, chain_id: int) -> ContractBinding:
        return ContractBinding(self.gateway.build_web3(), self.contract_address, signer, chain_id)

    # ==================== Read-only views ====================

    @property
    def session(self) -> Session:
        return self._session

    @property
    def capabilities(self) -> CapabilitySet:
        return PermissionGate.capabilities(self._session)

    @property
    def binding(self) -> Optional[ContractBinding]:
        return self._binding

    @property
    def items(self) -> Optional[InventorySnapshot]:
        if self._items is not None and self._items.generation == self._session.generation:
            return self._items
        return None

    @property
    def orders(self) -> Optional[OrderSnapshot]:
        if self._orders is not None and self._orders.generation == self._session.generation:
            return self._orders
        return None

    @property
    def stats(self) -> Optional[ContractStats]:
        if self._stats is not None and self._stats[0] == self._session.generation:
            return self._stats[1]
        return None

    # ==================== Lifecycle ====================

    def _ensure_worker(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        if self._unsubscribe is None:
            self._unsubscribe = self.gateway.subscribe(self._on_provider_event)
        self._worker = asyncio.create_task(self._run(), name="inventory-session-worker")

    async def start(self) -> Session:
        """
        Subscribe to provider events, start the worker and reconnect silently
        if the wallet already exposes an account.
        """
        self._ensure_worker()
        if not self.gateway.installed:
            error = NoProviderInstalled()
            await self._update(error_kind=error.kind, status_message=error.message)
            await self._status(StatusLevel.ERROR, error.message, error.kind)
            return self._session

        try:
            accounts = await self.gateway.selected_accounts()
        except ProviderRpcError as exc:
            logger.warning(f"Could not read selected accounts: {exc.message}")
            return self._session

        if accounts:
            return await self._submit_operation(_Operation(RECONNECT))
        return self._session

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        tasks = [task for task in (self._establish_task, self._worker) if task is not None]
        tasks.extend(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._worker = None
        self._establish_task = None
        self._background.clear()
        for waiter in self._carried_waiters:
            waiter.cancel()
        self._carried_waiters = []

    async def connect(self) -> Session:
        """
        Reset the session and connect, prompting the wallet for accounts.

        Returns:
            Session: The settled session. Failures are reported through
            ``error_kind`` / ``status_message`` and a StatusEvent, not raised.
        """
        return await self._submit_operation(_Operation(CONNECT))

    async def disconnect(self) -> Session:
        return await self._submit_operation(_Operation(DISCONNECT))

    async def switch_network(self, network_key: str) -> Session:
        """
        Ask the wallet to switch to a known network, then reconnect.

        Raises:
            ConfigurationError: If the network key is unknown.
            ChainSwitchRejected: If the user declines or the wallet errors.
        """
        self._ensure_worker()
        try:
            await self.reconciler.switch_to(network_key, on_switched=self._announce_switch)
        except InventoryError as exc:
            await self._status(StatusLevel.ERROR, exc.message, exc.kind)
            raise
        return await self._submit_operation(_Operation(RECONNECT))

    async def _announce_switch(self, config: NetworkConfig) -> None:
        await self._status(StatusLevel.SUCCESS, f"Switched to {config.chain_name}. Reconnecting...")

    async def inspect_contract(self) -> ContractInspection:
        """Report code size, balance and deployment status of the configured address."""
        await self._status(StatusLevel.LOADING, "Checking contract deployment...")
        try:
            report = await self.verifier.inspect(self.contract_address)
        except InventoryError as exc:
            await self._status(StatusLevel.ERROR, "Failed to inspect contract", exc.kind)
            raise
        await self._status(StatusLevel.INFO, "Contract inspection completed")
        return report

    # ==================== Worker ====================

    def _on_provider_event(self, event: BaseEvent) -> None:
        if isinstance(event, AccountsChangedEvent) and not event.accounts:
            operation = _Operation(DISCONNECT, events=[event])
        else:
            operation = _Operation(RECONNECT, events=[event])
        logger.info(f"Provider event queued: {event!r}")
        self._enqueue(operation)

    def _enqueue(self, operation: _Operation) -> None:
        self._ensure_worker()
        self._queue.put_nowait(operation)
        if operation.is_reset and self._establish_task is not None and not self._establish_task.done():
            logger.debug("Cancelling superseded connection attempt")
            self._establish_task.cancel()

    async def _submit_operation(self, operation: _Operation) -> Session:
        waiter = asyncio.get_running_loop().create_future()
        operation.waiters.append(waiter)
        self._enqueue(operation)
        return await waiter

    @staticmethod
    def _coalesce(batch: List[_Operation]) -> List[_Operation]:
        merged: List[_Operation] = []
        for operation in batch:
            if merged and merged[-1].is_reset and operation.is_reset:
                operation = operation.absorb(merged.pop())
            merged.append(operation)
        return merged

    async def _run(self) -> None:
        while True:
            batch = [await self._queue.get()]
            while not self._queue.empty():
                batch.append(self._queue.get_nowait())
            for operation in self._coalesce(batch):
                try:
                    await self._execute(operation)
                except asyncio.CancelledError:
                    for waiter in operation.waiters:
                        waiter.cancel()
                    raise
                except Exception as exc:
                    logger.exception(f"Session operation {operation.kind} failed: {exc}")
                    for waiter in operation.waiters:
                        if not waiter.done():
                            waiter.set_exception(exc)

    async def _execute(self, operation: _Operation) -> None:
        for event in operation.events:
            await self.event_bus.publish(event)

        if operation.kind == VERIFY:
            await self._reverify()
            self._resolve(operation.waiters)
            return

        waiters = self._carried_waiters + operation.waiters
        self._carried_waiters = []
        await self._reset()

        if operation.kind == DISCONNECT:
            await self._transition(ConnectionState.DISCONNECTED, status_message="Wallet disconnected")
            await self._status(StatusLevel.INFO, "Wallet disconnected")
            self._resolve(waiters)
            return

        task = asyncio.create_task(self._establish(prompt=operation.kind == CONNECT))
        self._establish_task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            for waiter in waiters:
                waiter.cancel()
            raise
        finally:
            self._establish_task = None

        if task.cancelled():
            # A newer reset is already queued; its completion answers these waiters.
            self._carried_waiters = waiters
            return

        error = task.exception()
        if error is not None and not isinstance(error, InventoryError):
            logger.opt(exception=error).error(f"Connection attempt failed unexpectedly: {error!r}")
            error = ProviderRpcError(ProviderRpcError.INTERNAL_ERROR, f"Connection failed: {error}")
        if error is not None and self._session.connection_state == ConnectionState.CONNECTING:
            await self._settle_failure(ConnectionState.DISCONNECTED, error)
        self._resolve(waiters)

    def _resolve(self, waiters: List[asyncio.Future]) -> None:
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(self._session)

    # ==================== Session mutation ====================

    async def _replace(self, session: Session) -> None:
        previous = self._session
        self._session = session
        logger.info(
            f"Session {session.generation}: {previous.connection_state.value} -> "
            f"{session.connection_state.value} ({session.status_message})"
        )
        await self.event_bus.publish(SessionChangedEvent(
            session=session,
            capabilities=PermissionGate.capabilities(session),
            previous=previous,
        ))

    async def _reset(self) -> None:
        self._binding = None
        self._items = None
        self._orders = None
        self._stats = None
        await self._replace(Session(
            generation=self._session.generation + 1,
            connection_state=ConnectionState.CONNECTING,
            status_message="Connecting to wallet...",
        ))

    async def _transition(self, state: ConnectionState, **changes: Any) -> None:
        current = self._session
        if state != current.connection_state and state not in _ALLOWED_TRANSITIONS[current.connection_state]:
            raise InvalidTransition(
                f"Cannot move session from {current.connection_state.value} to {state.value}"
            )
        await self._replace(current.model_copy(update={"connection_state": state, **changes}))

    async def _update(self, **changes: Any) -> None:
        await self._replace(self._session.model_copy(update=changes))

    async def _status(
        self,
        level: StatusLevel,
        message: str,
        error_kind: Optional[ErrorKind] = None,
    ) -> None:
        await self.event_bus.publish(StatusEvent(
            level=level,
            message=message,
            error_kind=error_kind,
            generation=self._session.generation,
        ))

    async def _settle_failure(self, state: ConnectionState, error: InventoryError) -> None:
        await self._transition(state, error_kind=error.kind, status_message=error.message)
        await self._status(StatusLevel.ERROR, error.message, error.kind)

    async def _establish(self, prompt: bool) -> None:
        await self._status(StatusLevel.LOADING, "Connecting to wallet...")

        try:
            if prompt:
                accounts = await self.gateway.request_accounts()
            else:
                accounts = await self.gateway.selected_accounts()
        except NoProviderInstalled as exc:
            await self._settle_failure(ConnectionState.DISCONNECTED, exc)
            return
        except ProviderRpcError as exc:
            await self._settle_failure(ConnectionState.DISCONNECTED, ProviderRpcError(
                exc.code, f"Connection failed: {exc.message}", exc.data
            ))
            return

        if not accounts:
            await self._transition(ConnectionState.DISCONNECTED, status_message="Please connect your wallet first")
            return
        account = accounts[0]

        try:
            network = await self.gateway.current_network()
        except ProviderRpcError as exc:
            await self._settle_failure(ConnectionState.DISCONNECTED, ProviderRpcError(
                exc.code, "Network connection failed. Please check your network settings.", exc.data
            ))
            return

        reconciled = await self.reconciler.reconcile(network.chain_id)
        await self._update(wallet_address=account, chain_id=network.chain_id, network_name=reconciled.network.name)
        if reconciled.warning:
            await self._status(StatusLevel.WARNING, reconciled.warning, ErrorKind.UNKNOWN_NETWORK)

        binding = self._binding_factory(account, network.chain_id)
        try:
            await self.verifier.verify(binding)
        except (VerificationError, ProviderRpcError) as exc:
            await self._settle_failure(ConnectionState.VERIFICATION_FAILED, exc)
            return

        try:
            is_manager = await binding.is_authorized_manager(account)
        except QueryFailed as exc:
            await self._settle_failure(ConnectionState.VERIFICATION_FAILED, exc)
            return

        self._binding = binding
        tier = PermissionTier.MANAGER if is_manager else PermissionTier.NONE
        await self._transition(
            ConnectionState.CONNECTED,
            permission_tier=tier,
            error_kind=None,
            status_message="Wallet connected successfully!",
        )
        banner = PermissionGate.banner(self._session)
        if banner is not None:
            await self._status(banner.level, banner.message)
        await self._status(StatusLevel.SUCCESS, "Wallet connected successfully!")

        name = self._session.network_name or CUSTOM_NETWORK_NAME
        logger.info(f"Connected {account} to {name} (tier={tier.value})")
        if self.auto_refresh:
            self._spawn(self.refresh_all())

    async def _reverify(self) -> None:
        binding = self._binding
        if binding is None or self._session.connection_state != ConnectionState.CONNECTED:
            return
        try:
            await self.verifier.verify(binding)
        except (VerificationError, ProviderRpcError) as exc:
            self._binding = None
            await self._settle_failure(ConnectionState.VERIFICATION_FAILED, exc)

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ==================== Preconditions ====================

    def _connected_binding(self) -> Tuple[ContractBinding, int]:
        if self._session.connection_state != ConnectionState.CONNECTED or self._binding is None:
            raise SessionNotReady()
        return self._binding, self._session.generation

    async def _verified_binding(self) -> Tuple[ContractBinding, int]:
        binding, generation = self._connected_binding()
        if not self.verifier.is_verified(*binding.triple):
            await self._submit_operation(_Operation(VERIFY))
            binding, current = self._connected_binding()
            if current != generation or not self.verifier.is_verified(*binding.triple):
                raise SessionNotReady(self._session.status_message or SessionNotReady.default_message)
        return binding, generation

    # ==================== Commands ====================

    async def submit(self, intent: CommandIntent) -> TransactionOutcome:
        """
        Dispatch a validated command intent.

        Args:
            intent: Command intent built from user input

        Returns:
            TransactionOutcome: Confirmed result, or a classified failure
            (authorization denied, contract unreachable, command rejected).

        Raises:
            SessionNotReady: If the session is not Connected and verified.
            ValidationError: If an order targets a missing or inactive item.
            CommandInFlight: If an identical command is already pending.
        """
        try:
            binding, generation = await self._verified_binding()
            if isinstance(intent, PlaceOrderIntent):
                await self._check_orderable(binding, intent.item_id)
            await self._status(StatusLevel.LOADING, intent.progress_message())
            # a reset during the awaits above retires the captured binding
            current, current_generation = self._connected_binding()
            if current is not binding or current_generation != generation:
                raise SessionNotReady("Session changed before the command was sent. Please try again.")
            outcome = await self.executor.submit(binding, intent, generation)
        except InventoryError as exc:
            await self._status(StatusLevel.ERROR, exc.message, exc.kind)
            raise

        if outcome.success:
            level = StatusLevel.WARNING if intent.kind == IntentKind.EMERGENCY_PAUSE else StatusLevel.SUCCESS
            await self._status(level, outcome.message)
            if self._session.generation == generation:
                await self._refresh_after(intent)
        else:
            await self._status(StatusLevel.ERROR, outcome.message, outcome.error_kind)
            if outcome.needs_reverification:
                self.verifier.invalidate()
        return outcome

    async def _check_orderable(self, binding: ContractBinding, item_id: int) -> None:
        try:
            item = await binding.get_item_info(item_id)
        except QueryFailed as exc:
            raise ValidationError("Cannot place order: Item ID does not exist") from exc
        if not item.is_active:
            raise ValidationError("Cannot place order: Item is inactive or deactivated")

    async def _refresh_after(self, intent: CommandIntent) -> None:
        try:
            if intent.refreshes == "items":
                await self.refresh_items()
            elif intent.refreshes == "orders":
                await self.refresh_orders()
        except InventoryError as exc:
            logger.warning(f"Refresh after {intent.kind.value} failed: {exc.message}")

    async def submit_kind(self, kind: IntentKind, payload: Optional[Dict[str, Any]] = None) -> TransactionOutcome:
        """Validate raw fields into an intent of ``kind`` and submit it."""
        try:
            intent = parse_intent(kind, payload)
        except ValidationError as exc:
            await self._status(StatusLevel.ERROR, exc.message, exc.kind)
            raise
        return await self.submit(intent)

    async def add_item(
        self,
        name: str,
        quantity: Any,
        price: Any,
        min_stock_level: Any,
        supplier: str,
    ) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.ADD_ITEM, {
            "name": name,
            "quantity": quantity,
            "price": price,
            "min_stock_level": min_stock_level,
            "supplier": supplier,
        })

    async def update_stock(self, item_id: Any, delta: Any) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.UPDATE_STOCK, {"item_id": item_id, "delta": delta})

    async def place_order(self, item_id: Any, quantity: Any) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.PLACE_ORDER, {"item_id": item_id, "quantity": quantity})

    async def process_order(self, order_id: Any, status: Any) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.PROCESS_ORDER, {"order_id": order_id, "status": status})

    async def authorize_manager(self, manager: str) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.AUTHORIZE_MANAGER, {"manager": manager})

    async def grant_access(self, item_id: Any, user: str) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.GRANT_ACCESS, {"item_id": item_id, "user": user})

    async def emergency_pause(self) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.EMERGENCY_PAUSE)

    async def deactivate_item(self, item_id: Any) -> TransactionOutcome:
        return await self.submit_kind(IntentKind.DEACTIVATE_ITEM, {"item_id": item_id})

    # ==================== Refresh ====================

    async def _read(self, failure_message: str, coro):
        try:
            return await coro
        except QueryFailed as exc:
            await self._status(StatusLevel.ERROR, failure_message, exc.kind)
            raise

    def _is_current(self, generation: int, what: str) -> bool:
        if generation != self._session.generation:
            logger.debug(f"Discarding stale {what} refresh from generation {generation}")
            return False
        return True

    async def refresh_items(self) -> Optional[InventorySnapshot]:
        """
        Reload every item listed by the contract.

        Items whose fetch fails are logged and skipped. The result is dropped
        (and None returned) if the session was reset while loading.

        Raises:
            SessionNotReady: If the session is not Connected.
            QueryFailed: If the item count itself cannot be read.
        """
        binding, generation = self._connected_binding()
        stats = await self._read("Failed to load inventory data", binding.get_contract_stats())

        item_ids = list(range(1, stats.total_items + 1))
        results = await asyncio.gather(*(binding.get_item_info(i) for i in item_ids), return_exceptions=True)
        items, skipped = [], []
        for item_id, result in zip(item_ids, results):
            if isinstance(result, Exception):
                logger.warning(f"Error loading item {item_id}: {result}")
                skipped.append(item_id)
            elif isinstance(result, BaseException):
                raise result
            else:
                items.append(result)

        snapshot = InventorySnapshot(
            items=items,
            skipped_ids=skipped,
            active_count=sum(1 for item in items if item.is_active),
            generation=generation,
        )
        if not self._is_current(generation, "items"):
            return None
        self._items = snapshot
        await self.event_bus.publish(ItemsRefreshedEvent(snapshot=snapshot))
        return snapshot

    async def refresh_orders(self) -> Optional[OrderSnapshot]:
        """Reload every order listed by the contract; failing orders are skipped."""
        binding, generation = self._connected_binding()
        stats = await self._read("Failed to load orders data", binding.get_contract_stats())

        order_ids = list(range(1, stats.total_orders + 1))
        results = await asyncio.gather(*(binding.get_order_info(i) for i in order_ids), return_exceptions=True)
        orders, skipped = [], []
        for order_id, result in zip(order_ids, results):
            if isinstance(result, Exception):
                logger.warning(f"Error loading order {order_id}: {result}")
                skipped.append(order_id)
            elif isinstance(result, BaseException):
                raise result
            else:
                orders.append(result)

        snapshot = OrderSnapshot(
            orders=orders,
            skipped_ids=skipped,
            pending_count=sum(1 for order in orders if order.status == OrderStatus.PENDING),
            fulfilled_count=sum(1 for order in orders if order.status == OrderStatus.FULFILLED),
            generation=generation,
        )
        if not self._is_current(generation, "orders"):
            return None
        self._orders = snapshot
        await self.event_bus.publish(OrdersRefreshedEvent(snapshot=snapshot))
        return snapshot

    async def refresh_stats(self) -> Optional[ContractStats]:
        binding, generation = self._connected_binding()
        stats = await self._read("Failed to load analytics data", binding.get_contract_stats())
        if not self._is_current(generation, "stats"):
            return None
        self._stats = (generation, stats)
        await self.event_bus.publish(StatsRefreshedEvent(stats=stats, generation=generation))
        return stats

    async def refresh_all(self) -> None:
        results = await asyncio.gather(
            self.refresh_items(),
            self.refresh_orders(),
            self.refresh_stats(),
            return_exceptions=True,
        )
        for what, result in zip(("items", "orders", "stats"), results):
            if isinstance(result, InventoryError):
                logger.warning(f"Refreshing {what} failed: {result.message}")
            elif isinstance(result, BaseException):
                raise result

    async def lookup_supplier(self, address: str) -> SupplierInfo:
        """
        Read the supplier registration for ``address``.

        Raises:
            ValidationError: If the address is malformed.
            SessionNotReady: If the session is not Connected.
            QueryFailed: If the getter fails.
        """
        if not isinstance(address, str) or not address.strip():
            raise ValidationError("Please enter supplier address")
        try:
            checksum = normalize_contract_address(address)
        except InventoryError:
            raise ValidationError(
                "Invalid supplier address format. Please enter a valid Ethereum address (0x...)"
            ) from None
        binding, _ = self._connected_binding()
        return await self._read("Failed to load supplier data", binding.get_supplier(checksum))
