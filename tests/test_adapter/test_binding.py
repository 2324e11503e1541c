"""
Contract Binding Test Suite

Queries run through a real AsyncWeb3 whose transport is FakeWallet, so ABI
encoding, revert decoding and empty-result handling are web3.py's own.
Commands replace the contract object with mocks, as the wallet signs
and broadcasts outside this process.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError, TransactionNotFound

from test_mocks import (
    CONTRACT_ADDRESS,
    MOCK_TX_HASH,
    OTHER_ADDRESS,
    OWNER_ADDRESS,
    SEPOLIA_CHAIN_ID,
    SUPPLIER_ADDRESS,
    FakeWallet,
    revert_error,
)

from inventory_session.adapters.evm.INVENTORY_ABI import COMMAND_FUNCTIONS
from inventory_session.adapters.evm.binding import ContractBinding
from inventory_session.adapters.evm.bridge import build_web3
from inventory_session.engine.exceptions import (
    AuthorizationDenied,
    CommandRejected,
    ContractUnreachable,
    ErrorKind,
    ProviderRpcError,
    QueryFailed,
)
from inventory_session.schemas.bases import OrderStatus
from inventory_session.schemas.intents import INTENT_TYPES, UpdateStockIntent


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def binding(wallet):
    return ContractBinding(build_web3(wallet), CONTRACT_ADDRESS.lower(), OWNER_ADDRESS, SEPOLIA_CHAIN_ID)


def mock_function(binding, name, estimate=None, transact=None):
    fn = MagicMock()
    fn.estimate_gas = estimate or AsyncMock(return_value=60000)
    fn.transact = transact or AsyncMock(return_value=HexBytes(MOCK_TX_HASH))
    binding.contract = MagicMock()
    getattr(binding.contract.functions, name).return_value = fn
    return fn


class TestQueries:

    def test_addresses_are_checksummed(self, binding):
        assert binding.address == CONTRACT_ADDRESS
        assert binding.triple == (CONTRACT_ADDRESS, SEPOLIA_CHAIN_ID, OWNER_ADDRESS)

    @pytest.mark.asyncio
    async def test_contract_stats(self, wallet, binding):
        wallet.call_results["getContractStats"] = (3, 2, 2, 1)

        stats = await binding.get_contract_stats()

        assert stats.total_items == 3
        assert stats.total_orders == 2
        assert stats.active_items_count == 2
        assert stats.pending_orders_count == 1
        call = wallet.method_calls("eth_call")[0][0]
        assert call["to"].lower() == CONTRACT_ADDRESS.lower()
        assert call["from"].lower() == OWNER_ADDRESS.lower()

    @pytest.mark.asyncio
    async def test_item_info(self, wallet, binding):
        wallet.call_results["getItemInfo"] = lambda item_id: ("Widget", SUPPLIER_ADDRESS, item_id == 2, 100, 200)

        item = await binding.get_item_info(2)

        assert item.id == 2
        assert item.name == "Widget"
        assert item.supplier.lower() == SUPPLIER_ADDRESS.lower()
        assert item.is_active
        assert (item.created_at, item.last_updated) == (100, 200)

    @pytest.mark.asyncio
    async def test_unprocessed_order(self, wallet, binding):
        wallet.call_results["getOrderInfo"] = lambda order_id: (4, 0, 100, 0)

        order = await binding.get_order_info(7)

        assert order.id == 7
        assert order.item_id == 4
        assert order.status == OrderStatus.PENDING
        assert order.processed_at is None

    @pytest.mark.asyncio
    async def test_undecodable_order_is_query_failure(self, wallet, binding):
        wallet.call_results["getOrderInfo"] = lambda order_id: (4, 7, 100, 0)

        with pytest.raises(QueryFailed) as exc_info:
            await binding.get_order_info(7)

        assert exc_info.value.cause_kind == ErrorKind.INTERFACE_MISMATCH
        assert exc_info.value.reason.startswith("getOrderInfo: unexpected return data")

    @pytest.mark.asyncio
    async def test_manager_lookup(self, wallet, binding):
        wallet.call_results["authorizedManagers"] = lambda address: address.lower() == OWNER_ADDRESS.lower()

        assert await binding.is_authorized_manager() is True
        assert await binding.is_authorized_manager(OTHER_ADDRESS) is False

    @pytest.mark.asyncio
    async def test_supplier(self, wallet, binding):
        wallet.call_results["suppliers"] = (False, 0)

        supplier = await binding.get_supplier(SUPPLIER_ADDRESS)

        assert not supplier.is_authorized
        assert supplier.registered_at is None

    @pytest.mark.asyncio
    async def test_counters(self, wallet, binding):
        wallet.call_results["getActiveItemsCount"] = 5
        wallet.call_results["getPendingOrdersCount"] = 2

        assert await binding.get_active_items_count() == 5
        assert await binding.get_pending_orders_count() == 2

    @pytest.mark.asyncio
    async def test_revert_becomes_query_failed(self, wallet, binding):
        wallet.call_results["getItemInfo"] = revert_error("Item does not exist")

        with pytest.raises(QueryFailed) as exc_info:
            await binding.get_item_info(99)

        assert "Item does not exist" in exc_info.value.reason
        assert exc_info.value.reason.startswith("getItemInfo")
        assert exc_info.value.cause_kind == ErrorKind.COMMAND_REJECTED

    @pytest.mark.asyncio
    async def test_empty_result_is_unreachable(self, wallet, binding):
        wallet.code = "0x"

        with pytest.raises(QueryFailed) as exc_info:
            await binding.get_contract_stats()

        assert exc_info.value.cause_kind == ErrorKind.CONTRACT_UNREACHABLE


class TestCommands:

    @pytest.mark.asyncio
    async def test_send_estimates_then_transacts(self, binding):
        fn = mock_function(binding, "updateStock")

        tx_hash = await binding.send(UpdateStockIntent(item_id=1, delta=-2))

        assert tx_hash == MOCK_TX_HASH
        binding.contract.functions.updateStock.assert_called_once_with(1, 2, False)
        fn.estimate_gas.assert_awaited_once_with({"from": OWNER_ADDRESS})
        fn.transact.assert_awaited_once_with({"from": OWNER_ADDRESS, "gas": 60000})

    @pytest.mark.asyncio
    async def test_authorization_revert(self, binding):
        fn = mock_function(
            binding,
            "updateStock",
            estimate=AsyncMock(side_effect=ContractLogicError("execution reverted: Not authorized manager")),
        )

        with pytest.raises(AuthorizationDenied):
            await binding.send(UpdateStockIntent(item_id=1, delta=3))

        fn.transact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_user_rejection(self, binding):
        mock_function(
            binding,
            "updateStock",
            transact=AsyncMock(side_effect=ProviderRpcError(4001, "User rejected the request.")),
        )

        with pytest.raises(CommandRejected) as exc_info:
            await binding.send(UpdateStockIntent(item_id=1, delta=3))

        assert exc_info.value.message == "Transaction failed: User rejected the request"

    @pytest.mark.asyncio
    async def test_view_function_is_never_sent(self, wallet, binding):
        intent = MagicMock()
        intent.to_call.return_value = ("getContractStats", ())

        with pytest.raises(CommandRejected) as exc_info:
            await binding.send(intent)

        assert exc_info.value.reason == "getContractStats is not a state-changing function"
        assert wallet.calls == []

    def test_every_intent_targets_a_command(self):
        assert {intent_cls.function_name for intent_cls in INTENT_TYPES.values()} <= COMMAND_FUNCTIONS

    @pytest.mark.asyncio
    async def test_wait_for_receipt_polls_until_mined(self, binding):
        receipt = {"status": 1, "blockNumber": 10, "gasUsed": 21000}
        binding.web3 = MagicMock()
        binding.web3.eth.get_transaction_receipt = AsyncMock(
            side_effect=[TransactionNotFound("pending"), None, receipt]
        )

        assert await binding.wait_for_receipt(MOCK_TX_HASH, poll_interval=0) == receipt
        assert binding.web3.eth.get_transaction_receipt.await_count == 3

    @pytest.mark.asyncio
    async def test_wait_for_receipt_classifies_node_errors(self, binding):
        binding.web3 = MagicMock()
        binding.web3.eth.get_transaction_receipt = AsyncMock(
            side_effect=ValueError("could not decode receipt")
        )

        with pytest.raises(ContractUnreachable):
            await binding.wait_for_receipt(MOCK_TX_HASH, poll_interval=0)
