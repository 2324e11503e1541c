"""
Event-driven system with typed events and clear data flow.

The session controller publishes typed events; the render surface (or the HTTP
bridge) subscribes to the classes it cares about. Provider-side events are
plain messages queued by the controller, never reentrant callbacks.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Dict, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict

from .exceptions import ErrorKind
from ..schemas.bases import (
    CapabilitySet,
    ContractStats,
    InventorySnapshot,
    OrderSnapshot,
    PendingTransaction,
    Session,
    StatusLevel,
    TransactionOutcome,
)

# ==================== Base Event ====================

class BaseEvent(ABC):
    """Base class for all events in the system."""

    @abstractmethod
    def __repr__(self) -> str:
        """String representation of the event."""
        pass


# ==================== Provider Events (External) ====================

class AccountsChangedEvent(BaseModel, BaseEvent):
    """External trigger: the wallet exposed a different account list."""
    accounts: List[str]

    model_config = ConfigDict(frozen=True)

    def __repr__(self) -> str:
        return f"AccountsChangedEvent(accounts={self.accounts})"


class ChainChangedEvent(BaseModel, BaseEvent):
    """External trigger: the wallet switched to another chain."""
    chain_id: int

    model_config = ConfigDict(frozen=True)

    def __repr__(self) -> str:
        return f"ChainChangedEvent(chain_id={self.chain_id})"


ProviderEvent = Union[AccountsChangedEvent, ChainChangedEvent]


# ==================== Session Events ====================

class SessionChangedEvent(BaseModel, BaseEvent):
    """A new Session snapshot replaced the previous one."""
    session: Session
    capabilities: CapabilitySet
    previous: Optional[Session] = None

    def __repr__(self) -> str:
        return (
            f"SessionChangedEvent(state={self.session.connection_state.value}, "
            f"generation={self.session.generation})"
        )


class StatusEvent(BaseModel, BaseEvent):
    """One status line for the render surface."""
    level: StatusLevel
    message: str
    error_kind: Optional[ErrorKind] = None
    generation: int = 0

    def __repr__(self) -> str:
        return f"StatusEvent(level={self.level.value}, message={self.message!r})"


# ==================== Projection Events ====================

class ItemsRefreshedEvent(BaseModel, BaseEvent):
    snapshot: InventorySnapshot

    def __repr__(self) -> str:
        return f"ItemsRefreshedEvent(items={len(self.snapshot.items)})"


class OrdersRefreshedEvent(BaseModel, BaseEvent):
    snapshot: OrderSnapshot

    def __repr__(self) -> str:
        return f"OrdersRefreshedEvent(orders={len(self.snapshot.orders)})"


class StatsRefreshedEvent(BaseModel, BaseEvent):
    stats: ContractStats
    generation: int = 0

    def __repr__(self) -> str:
        return f"StatsRefreshedEvent(stats={self.stats})"


# ==================== Transaction Events ====================

class TransactionSubmittedEvent(BaseModel, BaseEvent):
    """Result: the wallet accepted the transaction and returned a hash."""
    pending: PendingTransaction

    def __repr__(self) -> str:
        return f"TransactionSubmittedEvent(tx_hash={self.pending.tx_hash})"


class TransactionConfirmedEvent(BaseModel, BaseEvent):
    """Result: the transaction was mined successfully."""
    outcome: TransactionOutcome

    def __repr__(self) -> str:
        return f"TransactionConfirmedEvent(tx_hash={self.outcome.tx_hash})"


class TransactionFailedEvent(BaseModel, BaseEvent):
    """Result: the command was rejected, reverted or never reached the contract."""
    outcome: TransactionOutcome

    def __repr__(self) -> str:
        return f"TransactionFailedEvent(error_kind={self.outcome.error_kind})"


# ==================== Event Bus ====================

EventHandlerFunc = Callable[[BaseEvent], Awaitable[None]]
EventHookFunc = Callable[[BaseEvent], Awaitable[None]]


class EventBus:
    """Event dispatcher for publishing and subscribing to events."""

    def __init__(self) -> None:
        """Initialize with empty subscribers and hooks."""
        self._subscribers: Dict[type, List[EventHandlerFunc]] = {}
        self._hooks: Dict[type, List[EventHookFunc]] = {}

    def subscribe(self, event_class: type, handler: EventHandlerFunc) -> None:
        """
        Register an async handler for the given event class.
        Multiple handlers can be subscribed to the same event type and run in parallel.

        Args:
            event_class: The event class to subscribe to.
            handler: The async handler function to call when the event is published.

        Raises:
            TypeError: If handler is not a coroutine function.
        """
        if not inspect.iscoroutinefunction(handler):
            raise TypeError(f"Handler must be a coroutine function, got {type(handler).__name__}")

        self._subscribers.setdefault(event_class, []).append(handler)

    def unsubscribe(self, event_class: type, handler: EventHandlerFunc) -> None:
        handlers = self._subscribers.get(event_class, [])
        if handler in handlers:
            handlers.remove(handler)

    def hook(self, event_class: type, hook_func: EventHookFunc) -> None:
        """
        Register a hook for the given event class.
        Hooks are executed in order before subscribers when the event is published.

        Args:
            event_class: The event class to hook into.
            hook_func: The hook function to call when the event is published.
        """
        if not inspect.iscoroutinefunction(hook_func):
            raise TypeError(f"Handler must be a coroutine function, got {type(hook_func).__name__}")

        self._hooks.setdefault(event_class, []).append(hook_func)

    async def publish(self, event: BaseEvent) -> None:
        """
        Dispatch an event to all registered hooks and subscribers.

        Hooks run first, one after another, then all subscribers run in
        parallel. A failing handler is logged and never propagates to the
        publisher.

        Args:
            event: The event to dispatch.
        """
        for hook_func in list(self._hooks.get(type(event), [])):
            try:
                await hook_func(event)
            except Exception as exc:
                logger.error(f"Hook {getattr(hook_func, '__name__', hook_func)} failed for {event!r}: {exc}")

        handlers = list(self._subscribers.get(type(event), []))
        if not handlers:
            return

        results = await asyncio.gather(*(handler(event) for handler in handlers), return_exceptions=True)
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.error(f"Subscriber {getattr(handler, '__name__', handler)} failed for {event!r}: {result}")
