"""
Provider Gateway Test Suite

Account access, network detection, chain switching and event translation
over a scripted EIP-1193 wallet.
"""

import pytest

from test_mocks import (
    CONTRACT_ADDRESS,
    CUSTOM_CHAIN_ID,
    MAINNET_CHAIN_ID,
    MOCK_CODE,
    OTHER_ADDRESS,
    OWNER_ADDRESS,
    FakeWallet,
)

from inventory_session.adapters.bases import ACCOUNTS_CHANGED, CHAIN_CHANGED
from inventory_session.adapters.evm.constants import get_network
from inventory_session.adapters.provider import ProviderGateway, parse_chain_id
from inventory_session.engine.events import AccountsChangedEvent, ChainChangedEvent
from inventory_session.engine.exceptions import ChainSwitchRejected, NoProviderInstalled, ProviderRpcError


class TestParseChainId:

    @pytest.mark.parametrize("value, expected", [
        ("0xaa36a7", 11155111),
        ("0x1", 1),
        ("1337", 1337),
        (31337, 31337),
    ])
    def test_accepts_hex_and_int(self, value, expected):
        assert parse_chain_id(value) == expected

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            parse_chain_id(None)


class TestAccounts:

    @pytest.mark.asyncio
    async def test_request_accounts_checksums(self):
        gateway = ProviderGateway(FakeWallet(accounts=[OWNER_ADDRESS.lower()]))
        assert await gateway.request_accounts() == [OWNER_ADDRESS]

    @pytest.mark.asyncio
    async def test_empty_account_list_is_unauthorized(self):
        gateway = ProviderGateway(FakeWallet(accounts=[]))
        with pytest.raises(ProviderRpcError) as exc_info:
            await gateway.request_accounts()
        assert exc_info.value.code == ProviderRpcError.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_malformed_account_is_provider_error(self):
        gateway = ProviderGateway(FakeWallet(accounts=["0x1234"]))
        with pytest.raises(ProviderRpcError) as exc_info:
            await gateway.request_accounts()
        assert exc_info.value.code == ProviderRpcError.INTERNAL_ERROR

    @pytest.mark.asyncio
    async def test_selected_accounts_do_not_prompt(self):
        wallet = FakeWallet()
        gateway = ProviderGateway(wallet)

        assert await gateway.selected_accounts() == []
        assert wallet.method_calls("eth_requestAccounts") == []

    @pytest.mark.asyncio
    async def test_no_provider(self):
        gateway = ProviderGateway()

        assert not gateway.installed
        assert await gateway.selected_accounts() == []
        with pytest.raises(NoProviderInstalled):
            await gateway.request_accounts()
        with pytest.raises(NoProviderInstalled):
            await gateway.current_network()


class TestNetwork:

    @pytest.mark.asyncio
    async def test_known_network(self):
        network = await ProviderGateway(FakeWallet()).current_network()
        assert network.chain_id == 11155111
        assert network.name == "Sepolia"

    @pytest.mark.asyncio
    async def test_custom_network_has_no_name(self):
        network = await ProviderGateway(FakeWallet(chain_id=CUSTOM_CHAIN_ID)).current_network()
        assert network.chain_id == CUSTOM_CHAIN_ID
        assert network.name is None

    @pytest.mark.asyncio
    async def test_malformed_chain_id_is_provider_error(self):
        wallet = FakeWallet()
        wallet.chain_id = "not-a-chain"
        with pytest.raises(ProviderRpcError) as exc_info:
            await ProviderGateway(wallet).current_network()
        assert exc_info.value.code == ProviderRpcError.INTERNAL_ERROR
        assert "not-a-chain" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_switch_known_chain(self):
        wallet = FakeWallet()
        await ProviderGateway(wallet).request_chain_switch(MAINNET_CHAIN_ID)

        assert wallet.chain_id == MAINNET_CHAIN_ID
        assert wallet.method_calls("wallet_switchEthereumChain") == [[{"chainId": "0x1"}]]

    @pytest.mark.asyncio
    async def test_unrecognized_chain_is_added_then_switched(self):
        wallet = FakeWallet()
        wallet.known_chains.discard(MAINNET_CHAIN_ID)
        params = get_network("mainnet").add_chain_params()

        await ProviderGateway(wallet).request_chain_switch(MAINNET_CHAIN_ID, params)

        assert wallet.method_calls("wallet_addEthereumChain") == [[params]]
        assert len(wallet.method_calls("wallet_switchEthereumChain")) == 2
        assert wallet.chain_id == MAINNET_CHAIN_ID

    @pytest.mark.asyncio
    async def test_unrecognized_chain_without_params_is_rejected(self):
        wallet = FakeWallet()
        wallet.known_chains.discard(MAINNET_CHAIN_ID)

        with pytest.raises(ChainSwitchRejected):
            await ProviderGateway(wallet).request_chain_switch(MAINNET_CHAIN_ID)

    @pytest.mark.asyncio
    async def test_user_rejected_switch(self):
        wallet = FakeWallet()
        wallet.errors["wallet_switchEthereumChain"] = ProviderRpcError(4001, "User rejected the request.")

        with pytest.raises(ChainSwitchRejected) as exc_info:
            await ProviderGateway(wallet).request_chain_switch(MAINNET_CHAIN_ID, {"chainId": "0x1"})

        assert exc_info.value.message == "Failed to switch network. Please switch manually in your wallet."
        assert wallet.method_calls("wallet_addEthereumChain") == []


class TestChainReads:

    @pytest.mark.asyncio
    async def test_get_code(self):
        gateway = ProviderGateway(FakeWallet())
        assert await gateway.get_code(CONTRACT_ADDRESS) == bytes.fromhex(MOCK_CODE[2:])

    @pytest.mark.asyncio
    async def test_get_code_empty(self):
        gateway = ProviderGateway(FakeWallet(code="0x"))
        assert await gateway.get_code(CONTRACT_ADDRESS) == b""

    @pytest.mark.asyncio
    async def test_get_balance(self):
        gateway = ProviderGateway(FakeWallet(balance=10**18))
        assert await gateway.get_balance(CONTRACT_ADDRESS) == 10**18


class TestSubscribe:

    def test_events_are_typed(self):
        wallet = FakeWallet()
        received = []
        ProviderGateway(wallet).subscribe(received.append)

        wallet.emit(ACCOUNTS_CHANGED, [OTHER_ADDRESS.lower()])
        wallet.emit(CHAIN_CHANGED, "0x1")

        assert received == [
            AccountsChangedEvent(accounts=[OTHER_ADDRESS]),
            ChainChangedEvent(chain_id=1),
        ]

    def test_unsubscribe(self):
        wallet = FakeWallet()
        received = []
        unsubscribe = ProviderGateway(wallet).subscribe(received.append)

        unsubscribe()
        wallet.emit(CHAIN_CHANGED, "0x1")

        assert received == []

    def test_subscribe_without_provider(self):
        unsubscribe = ProviderGateway().subscribe(lambda event: None)
        assert unsubscribe() is None
