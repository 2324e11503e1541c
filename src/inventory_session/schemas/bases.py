"""
Base Schema Models for the Inventory Session

This module defines the data model shared by every component: the session
snapshot, the read projections decoded from the contract, and the records
produced by the transaction workflow.

Core Classes:
    - CanonicalModel: Pydantic base model with deterministic JSON serialization
    - Session: Immutable snapshot of the wallet connection lifecycle
    - InventoryItem / Order / ContractStats / SupplierInfo: Contract read projections
    - CapabilitySet: UI capability flags derived from the permission tier
    - PendingTransaction / TransactionOutcome: Transaction workflow records

Timestamps are kept as integer seconds-since-epoch exactly as the contract
returns them. Conversion to display time belongs to the render surface.

Dependencies:
    - pydantic: For data validation and serialization
"""

import json
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..engine.exceptions import ErrorKind


class CanonicalModel(BaseModel):
    """
    Pydantic base model with canonical JSON serialization.

    Snapshots handed to the render surface are serialized through
    ``to_canonical_json`` so that two equal snapshots always produce the same
    string.
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_canonical_json(self) -> str:
        """
        Convert model to a canonical JSON string (sorted keys, compact separators).

        Returns:
            str: Deterministic JSON representation of the model.
        """
        data = self.model_dump(mode="json")
        return json.dumps(
            data,
            separators=(",", ":"),
            sort_keys=True,
            ensure_ascii=False
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model to dictionary representation.

        Returns:
            Dict[str, Any]: Dictionary with all model fields.
        """
        return self.model_dump()


class ConnectionState(str, Enum):
    """
    Lifecycle state of the wallet session.

    Attributes:
        DISCONNECTED: No wallet connection (initial state, or after a failure
            that happened before verification)
        CONNECTING: Accounts, network, contract and tier are being derived
        CONNECTED: Contract verified and permission tier resolved
        VERIFICATION_FAILED: Contract presence/interface check or tier
            resolution failed for the current account and chain
    """
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    VERIFICATION_FAILED = "verification_failed"


class PermissionTier(str, Enum):
    """Authorization tier of the connected address (advisory only)."""
    UNKNOWN = "unknown"
    NONE = "none"
    MANAGER = "manager"


class OrderStatus(IntEnum):
    """Order lifecycle status, encoded on chain as ``uint8``."""
    PENDING = 0
    APPROVED = 1
    REJECTED = 2
    FULFILLED = 3
    CANCELLED = 4


class StatusLevel(str, Enum):
    """Severity of a status message shown by the render surface."""
    INFO = "info"
    LOADING = "loading"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Session(CanonicalModel):
    """
    Immutable snapshot of the wallet session.

    Exactly one live Session exists per controller. It is replaced, never
    mutated: progress within one connection lifecycle produces a copy with the
    same ``generation``; any reset (disconnect, account change, chain change)
    produces a brand new Session with ``generation + 1``.

    Attributes:
        wallet_address: Connected account in checksum format
        chain_id: Active chain ID reported by the provider
        network_name: Human-readable network name (None for unnamed custom chains)
        connection_state: Current lifecycle state
        permission_tier: Resolved authorization tier
        generation: Monotonic connection-lifecycle tag used to discard stale results
        error_kind: Classification of the failure that ended the last attempt
        status_message: Human-readable description of the last transition
    """
    model_config = ConfigDict(frozen=True)

    wallet_address: Optional[str] = None
    chain_id: Optional[int] = None
    network_name: Optional[str] = None
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
    permission_tier: PermissionTier = PermissionTier.UNKNOWN
    generation: int = Field(default=0, ge=0)
    error_kind: Optional[ErrorKind] = None
    status_message: Optional[str] = None

    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED


class NetworkInfo(CanonicalModel):
    """Active network as reported by the provider."""
    chain_id: int = Field(..., gt=0)
    name: Optional[str] = Field(None, description="Known network name, None for custom chains")


class CapabilitySet(CanonicalModel):
    """Which manager-only actions the render surface should enable."""
    model_config = ConfigDict(frozen=True)

    can_add_item: bool = False
    can_authorize_manager: bool = False
    can_grant_access: bool = False
    can_emergency_pause: bool = False

    def any(self) -> bool:
        return any(self.model_dump().values())


class InventoryItem(CanonicalModel):
    """Read projection of ``getItemInfo``. The contract is the source of truth."""
    id: int = Field(..., gt=0)
    name: str
    supplier: str
    is_active: bool
    created_at: int = Field(..., ge=0, description="Seconds since epoch")
    last_updated: int = Field(..., ge=0, description="Seconds since epoch")


class Order(CanonicalModel):
    """Read projection of ``getOrderInfo``."""
    id: int = Field(..., gt=0)
    item_id: int = Field(..., ge=0)
    status: OrderStatus
    created_at: int = Field(..., ge=0, description="Seconds since epoch")
    processed_at: Optional[int] = Field(None, description="Seconds since epoch, None until processed")

    def is_open(self) -> bool:
        return self.status == OrderStatus.PENDING


class ContractStats(CanonicalModel):
    """Aggregate counters returned by ``getContractStats``."""
    total_items: int = Field(..., ge=0)
    total_orders: int = Field(..., ge=0)
    active_items_count: int = Field(..., ge=0)
    pending_orders_count: int = Field(..., ge=0)


class SupplierInfo(CanonicalModel):
    """Registration record returned by the ``suppliers(address)`` getter."""
    address: str
    is_authorized: bool
    registered_at: Optional[int] = None


class InventorySnapshot(CanonicalModel):
    """
    Result of a bulk item refresh.

    Attributes:
        items: Items that decoded successfully
        skipped_ids: Item IDs whose fetch failed and were left out
        active_count: Number of active items in ``items``
        low_stock_count: Always None. Stock levels are encrypted on chain and
            cannot be read client-side.
        generation: Session generation the refresh was issued against
    """
    items: List[InventoryItem] = Field(default_factory=list)
    skipped_ids: List[int] = Field(default_factory=list)
    active_count: int = 0
    low_stock_count: Optional[int] = None
    generation: int = 0


class OrderSnapshot(CanonicalModel):
    """Result of a bulk order refresh."""
    orders: List[Order] = Field(default_factory=list)
    skipped_ids: List[int] = Field(default_factory=list)
    pending_count: int = 0
    fulfilled_count: int = 0
    generation: int = 0


class PendingTransaction(CanonicalModel):
    """A command between submission and confirmation. Never persisted."""
    intent_kind: str
    submitted_at: float
    tx_hash: Optional[str] = None
    generation: int = 0


class TransactionOutcome(CanonicalModel):
    """
    Final result of a submitted command.

    Attributes:
        intent_kind: Kind of the intent that was submitted
        success: True if the transaction was mined with status 1
        tx_hash: Transaction hash if the command reached the wallet
        block_number: Block the transaction was mined in
        gas_used: Gas consumed by the transaction
        execution_time: Seconds from submission to confirmation
        error_kind: Classification of the failure, None on success
        message: User-facing status line
        needs_reverification: True when the failure suggests the contract is
            no longer reachable at the configured address
    """
    intent_kind: str
    success: bool
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    execution_time: Optional[float] = Field(None, ge=0)
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    needs_reverification: bool = False

    def is_success(self) -> bool:
        return self.success


class VerificationResult(CanonicalModel):
    """Successful verification of the contract at a given (address, chain, signer)."""
    address: str
    chain_id: int
    signer: str
    code_size: int = Field(..., gt=0)
    stats: ContractStats


class ContractInspection(CanonicalModel):
    """Diagnostic report on the configured contract address."""
    address: str
    chain_id: int
    network_name: Optional[str] = None
    code_size: int = 0
    balance_wei: int = 0
    deployed: bool = False

    def summary(self) -> str:
        if not self.deployed:
            return "No smart contract is deployed at this address on the current network."
        return "Contract found. It may still have interface issues."
