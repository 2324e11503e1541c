from .bases import (
    CanonicalModel,
    CapabilitySet,
    ConnectionState,
    ContractInspection,
    ContractStats,
    InventoryItem,
    InventorySnapshot,
    NetworkInfo,
    Order,
    OrderSnapshot,
    OrderStatus,
    PendingTransaction,
    PermissionTier,
    Session,
    StatusLevel,
    SupplierInfo,
    TransactionOutcome,
    VerificationResult,
)
from .intents import CommandIntent, IntentKind, parse_intent

__all__ = [
    "CanonicalModel",
    "CapabilitySet",
    "ConnectionState",
    "ContractInspection",
    "ContractStats",
    "InventoryItem",
    "InventorySnapshot",
    "NetworkInfo",
    "Order",
    "OrderSnapshot",
    "OrderStatus",
    "PendingTransaction",
    "PermissionTier",
    "Session",
    "StatusLevel",
    "SupplierInfo",
    "TransactionOutcome",
    "VerificationResult",
    "CommandIntent",
    "IntentKind",
    "parse_intent",
]
