"""
Command Intents

Typed, validated representations of the state-changing actions the render
surface can request. Each intent knows the contract function it maps to, the
arguments it encodes, and how to describe itself to the user.

Validation happens entirely client-side when an intent is built. Any malformed
input raises :class:`~inventory_session.engine.exceptions.ValidationError`
before a single network call is made.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Dict, Tuple, Type, Union

from pydantic import Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from web3 import Web3

from ..adapters.evm.constants import UINT32_MAX, UINT64_MAX, ether_to_wei
from ..engine.exceptions import ValidationError
from .bases import CanonicalModel, OrderStatus


class IntentKind(str, Enum):
    ADD_ITEM = "add_item"
    UPDATE_STOCK = "update_stock"
    PLACE_ORDER = "place_order"
    PROCESS_ORDER = "process_order"
    AUTHORIZE_MANAGER = "authorize_manager"
    GRANT_ACCESS = "grant_access"
    EMERGENCY_PAUSE = "emergency_pause"
    DEACTIVATE_ITEM = "deactivate_item"


def _checksum(value: Any, field_label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Please enter {field_label}")
    if not Web3.is_address(value.strip()):
        raise ValueError(
            f"Invalid {field_label} format. Please enter a valid Ethereum address (0x...)"
        )
    return Web3.to_checksum_address(value.strip())


class CommandIntent(CanonicalModel):
    """
    Base class for state-changing intents.

    Subclasses declare:
        kind: IntentKind of the intent
        function_name: Contract function the intent calls
        refreshes: Which projection to reload after confirmation ("items" or "orders")
    """
    kind: ClassVar[IntentKind]
    function_name: ClassVar[str]
    refreshes: ClassVar[str] = "items"

    def contract_args(self) -> Tuple[Any, ...]:
        return ()

    def to_call(self) -> Tuple[str, Tuple[Any, ...]]:
        """Contract function name and positional arguments."""
        return self.function_name, self.contract_args()

    def dedupe_key(self) -> Tuple[Any, ...]:
        """Identity of the command: identical keys mean identical transactions."""
        return (self.kind.value,) + tuple(self.contract_args())

    def progress_message(self) -> str:
        return "Submitting transaction..."

    def success_message(self) -> str:
        return "Transaction confirmed"


class AddItemIntent(CommandIntent):
    """Add an inventory item. ``price`` is entered in ether and sent in wei."""
    kind: ClassVar[IntentKind] = IntentKind.ADD_ITEM
    function_name: ClassVar[str] = "addInventoryItem"

    name: str
    quantity: int = Field(..., ge=0, le=UINT32_MAX)
    price_wei: int = Field(..., ge=0, le=UINT64_MAX, alias="price")
    min_stock_level: int = Field(..., ge=0, le=UINT32_MAX)
    supplier: str

    @field_validator("name", mode="before")
    @classmethod
    def _name_required(cls, value):
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Item name is required")
        return value.strip()

    @field_validator("price_wei", mode="before")
    @classmethod
    def _price_to_wei(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Price is required")
        if isinstance(value, bool):
            raise ValueError("Price must be a number")
        if isinstance(value, (str, float, Decimal)):
            return ether_to_wei(value)
        return ether_to_wei(Decimal(value))

    @field_validator("supplier", mode="before")
    @classmethod
    def _supplier_address(cls, value):
        return _checksum(value, "supplier address")

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.quantity, self.price_wei, self.min_stock_level, self.name, self.supplier)

    def progress_message(self) -> str:
        return "Adding new inventory item..."

    def success_message(self) -> str:
        return "Inventory item added successfully!"


class UpdateStockIntent(CommandIntent):
    """Signed stock change; the contract takes a magnitude and a direction flag."""
    kind: ClassVar[IntentKind] = IntentKind.UPDATE_STOCK
    function_name: ClassVar[str] = "updateStock"

    item_id: int = Field(..., gt=0, le=UINT32_MAX)
    delta: int = Field(..., ge=-UINT32_MAX, le=UINT32_MAX)

    @field_validator("delta")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("Quantity change must be non-zero")
        return value

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.item_id, abs(self.delta), self.delta > 0)

    def progress_message(self) -> str:
        return "Updating stock..."

    def success_message(self) -> str:
        return "Stock updated successfully!"


class PlaceOrderIntent(CommandIntent):
    kind: ClassVar[IntentKind] = IntentKind.PLACE_ORDER
    function_name: ClassVar[str] = "placeOrder"
    refreshes: ClassVar[str] = "orders"

    item_id: int = Field(..., gt=0, le=UINT32_MAX)
    quantity: int = Field(..., gt=0, le=UINT32_MAX)

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.item_id, self.quantity)

    def progress_message(self) -> str:
        return "Placing order..."

    def success_message(self) -> str:
        return "Order placed successfully!"


class ProcessOrderIntent(CommandIntent):
    """Move a pending order to a terminal status."""
    kind: ClassVar[IntentKind] = IntentKind.PROCESS_ORDER
    function_name: ClassVar[str] = "processOrder"
    refreshes: ClassVar[str] = "orders"

    order_id: int = Field(..., gt=0, le=UINT32_MAX)
    status: OrderStatus

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if isinstance(value, str):
            text = value.strip()
            if text.isdigit():
                return int(text)
            try:
                return OrderStatus[text.upper()]
            except KeyError:
                raise ValueError(f"Unknown order status '{value}'") from None
        return value

    @field_validator("status")
    @classmethod
    def _not_pending(cls, value: OrderStatus) -> OrderStatus:
        if value == OrderStatus.PENDING:
            raise ValueError("An order cannot be processed back to Pending")
        return value

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.order_id, int(self.status))

    def progress_message(self) -> str:
        return f"{self.status.name.capitalize()} order..."

    def success_message(self) -> str:
        return f"Order {self.status.name.lower()} successfully!"


class AuthorizeManagerIntent(CommandIntent):
    kind: ClassVar[IntentKind] = IntentKind.AUTHORIZE_MANAGER
    function_name: ClassVar[str] = "authorizeManager"
    refreshes: ClassVar[str] = "none"

    manager: str

    @field_validator("manager", mode="before")
    @classmethod
    def _manager_address(cls, value):
        return _checksum(value, "manager address")

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.manager,)

    def progress_message(self) -> str:
        return "Authorizing manager..."

    def success_message(self) -> str:
        return "Manager authorized successfully!"


class GrantAccessIntent(CommandIntent):
    kind: ClassVar[IntentKind] = IntentKind.GRANT_ACCESS
    function_name: ClassVar[str] = "grantInventoryAccess"
    refreshes: ClassVar[str] = "none"

    item_id: int = Field(..., gt=0, le=UINT32_MAX)
    user: str

    @field_validator("user", mode="before")
    @classmethod
    def _user_address(cls, value):
        return _checksum(value, "user address")

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.item_id, self.user)

    def progress_message(self) -> str:
        return "Granting access..."

    def success_message(self) -> str:
        return "Access granted successfully!"


class EmergencyPauseIntent(CommandIntent):
    """Deactivate every item. Irreversible on the contract side."""
    kind: ClassVar[IntentKind] = IntentKind.EMERGENCY_PAUSE
    function_name: ClassVar[str] = "emergencyPause"

    def progress_message(self) -> str:
        return "Emergency pause in progress..."

    def success_message(self) -> str:
        return "Emergency pause completed!"


class DeactivateItemIntent(CommandIntent):
    kind: ClassVar[IntentKind] = IntentKind.DEACTIVATE_ITEM
    function_name: ClassVar[str] = "deactivateItem"

    item_id: int = Field(..., gt=0, le=UINT32_MAX)

    def contract_args(self) -> Tuple[Any, ...]:
        return (self.item_id,)

    def progress_message(self) -> str:
        return "Deactivating item..."

    def success_message(self) -> str:
        return "Item deactivated successfully!"


INTENT_TYPES: Dict[IntentKind, Type[CommandIntent]] = {
    AddItemIntent.kind: AddItemIntent,
    UpdateStockIntent.kind: UpdateStockIntent,
    PlaceOrderIntent.kind: PlaceOrderIntent,
    ProcessOrderIntent.kind: ProcessOrderIntent,
    AuthorizeManagerIntent.kind: AuthorizeManagerIntent,
    GrantAccessIntent.kind: GrantAccessIntent,
    EmergencyPauseIntent.kind: EmergencyPauseIntent,
    DeactivateItemIntent.kind: DeactivateItemIntent,
}


def _first_error_message(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    first = errors[0]
    message = str(first.get("msg", ValidationError.default_message))
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    if first.get("type") == "missing":
        return ValidationError.default_message
    location = ".".join(str(part) for part in first.get("loc", ()))
    return message if not location or first.get("type") == "value_error" else f"{location}: {message}"


def parse_intent(kind: Union[IntentKind, str], payload: Dict[str, Any] = None) -> CommandIntent:
    """
    Build and validate an intent from raw render-surface fields.

    Args:
        kind: Intent kind (enum or its string value)
        payload: Raw field values as entered by the user

    Returns:
        CommandIntent: Validated intent ready for submission

    Raises:
        ValidationError: If the kind is unknown or any field is malformed.
    """
    try:
        intent_kind = IntentKind(kind)
    except ValueError:
        raise ValidationError(f"Unknown intent '{kind}'") from None

    intent_cls = INTENT_TYPES[intent_kind]
    # unset form fields arrive as None and count as missing
    fields = {key: value for key, value in (payload or {}).items() if value is not None}
    try:
        return intent_cls.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError(_first_error_message(exc)) from exc
