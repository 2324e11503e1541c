"""
Inventory Contract Binding

Typed wrapper around the SecretInventoryManagement contract for one
``(address, chain_id, signer)`` triple. A binding is immutable: when the
account or the chain changes the controller builds a new one.

Queries decode into pydantic models and raise ``QueryFailed`` on any failure.
Commands return the transaction hash as soon as the wallet accepts them;
confirmation is a separate, untimed wait.

Dependencies:
    - web3.py: AsyncWeb3 contract calls, gas estimation and receipts
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar

from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import TransactionNotFound
from web3.types import TxReceipt

from .INVENTORY_ABI import COMMAND_FUNCTIONS, get_inventory_abi
from .errors import classify_error, query_error
from ...engine.exceptions import CommandRejected, ErrorKind, QueryFailed
from ...schemas.bases import ContractStats, InventoryItem, Order, OrderStatus, SupplierInfo

T = TypeVar("T")


class ContractBinding:
    """
    Contract handle bound to a signer and a chain.

    Attributes:
        web3: AsyncWeb3 instance whose transport is the wallet provider
        address: Contract address in checksum format
        signer: Account that sends commands and is used as ``from`` for reads
        chain_id: Chain the binding was built for
        contract: web3.py contract object built from the fixed ABI
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        address: str,
        signer: str,
        chain_id: int,
        abi: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        self.web3 = web3
        self.address = AsyncWeb3.to_checksum_address(address)
        self.signer = AsyncWeb3.to_checksum_address(signer)
        self.chain_id = chain_id
        self.abi = abi or get_inventory_abi()
        self.contract = web3.eth.contract(address=self.address, abi=self.abi)

    @property
    def triple(self):
        return self.address, self.chain_id, self.signer

    def __repr__(self) -> str:
        return f"ContractBinding(address={self.address}, chain_id={self.chain_id}, signer={self.signer})"

    # ==================== Queries ====================

    async def _call(self, function_name: str, *args: Any) -> Any:
        try:
            fn = getattr(self.contract.functions, function_name)(*args)
            return await fn.call({"from": self.signer})
        except Exception as exc:
            raise query_error(function_name, exc) from exc

    @staticmethod
    def _decode(function_name: str, build: Callable[[], T]) -> T:
        # return data shaped unlike the fixed ABI
        try:
            return build()
        except (ValueError, TypeError, IndexError) as exc:
            raise QueryFailed(
                reason=f"{function_name}: unexpected return data ({exc})",
                cause_kind=ErrorKind.INTERFACE_MISMATCH,
            ) from exc

    async def get_contract_stats(self) -> ContractStats:
        result = await self._call("getContractStats")
        return self._decode("getContractStats", lambda: ContractStats(
            total_items=result[0],
            total_orders=result[1],
            active_items_count=result[2],
            pending_orders_count=result[3],
        ))

    async def get_item_info(self, item_id: int) -> InventoryItem:
        result = await self._call("getItemInfo", item_id)
        return self._decode("getItemInfo", lambda: InventoryItem(
            id=item_id,
            name=result[0],
            supplier=result[1],
            is_active=result[2],
            created_at=result[3],
            last_updated=result[4],
        ))

    async def get_order_info(self, order_id: int) -> Order:
        result = await self._call("getOrderInfo", order_id)
        return self._decode("getOrderInfo", lambda: Order(
            id=order_id,
            item_id=result[0],
            status=OrderStatus(result[1]),
            created_at=result[2],
            processed_at=result[3] or None,
        ))

    async def get_active_items_count(self) -> int:
        return int(await self._call("getActiveItemsCount"))

    async def get_pending_orders_count(self) -> int:
        return int(await self._call("getPendingOrdersCount"))

    async def is_authorized_manager(self, address: Optional[str] = None) -> bool:
        target = AsyncWeb3.to_checksum_address(address) if address else self.signer
        return bool(await self._call("authorizedManagers", target))

    async def get_supplier(self, address: str) -> SupplierInfo:
        checksum = AsyncWeb3.to_checksum_address(address)
        is_authorized, registered_at = await self._call("suppliers", checksum)
        return SupplierInfo(
            address=checksum,
            is_authorized=is_authorized,
            registered_at=registered_at or None,
        )

    # ==================== Commands ====================

    async def send(self, intent) -> str:
        """
        Submit a command intent through the wallet.

        Gas is estimated first so that reverts surface before the wallet
        prompts. The call returns as soon as the wallet hands back a hash.

        Args:
            intent: Validated command intent (anything exposing ``to_call()``)

        Returns:
            str: 0x-prefixed transaction hash

        Raises:
            InventoryError: Already-classified failure (``AuthorizationDenied``,
                ``ContractUnreachable`` or ``CommandRejected``).
        """
        function_name, args = intent.to_call()
        if function_name not in COMMAND_FUNCTIONS:
            raise CommandRejected(reason=f"{function_name} is not a state-changing function")
        try:
            fn = getattr(self.contract.functions, function_name)(*args)
            tx_params = {"from": self.signer}
            gas_estimate = await fn.estimate_gas(tx_params)
            tx_hash = await fn.transact({**tx_params, "gas": gas_estimate})
        except Exception as exc:
            classified = classify_error(exc)
            logger.error(f"{function_name} submission failed: {classified.message}")
            raise classified from exc

        tx_hash_hex = AsyncWeb3.to_hex(tx_hash)
        logger.info(f"{function_name} submitted: {tx_hash_hex}")
        return tx_hash_hex

    async def wait_for_receipt(self, tx_hash: str, poll_interval: float = 2.0) -> TxReceipt:
        """
        Poll until the transaction is mined.

        There is no client-side timeout: a transaction the wallet accepted is
        waited on until the node reports a receipt.

        Raises:
            InventoryError: Classified failure if the node errors while polling.
        """
        while True:
            try:
                receipt = await self.web3.eth.get_transaction_receipt(tx_hash)
                if receipt:
                    return receipt
            except TransactionNotFound:
                pass  # still pending
            except Exception as exc:
                raise classify_error(exc) from exc
            await asyncio.sleep(poll_interval)
