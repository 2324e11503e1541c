"""
Network reconciliation tests.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from test_mocks import CUSTOM_CHAIN_ID, MAINNET_CHAIN_ID, FakeWallet

from inventory_session.adapters.evm.constants import KNOWN_NETWORKS
from inventory_session.adapters.evm.networks import UNKNOWN_NETWORK_MESSAGE, NetworkReconciler
from inventory_session.adapters.provider import ProviderGateway
from inventory_session.engine.exceptions import ConfigurationError

FETCH_CHAIN_NAME = "inventory_session.adapters.evm.networks.fetch_chain_name"


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def reconciler(wallet):
    return NetworkReconciler(ProviderGateway(wallet), resolve_names=False)


class TestReconcile:

    @pytest.mark.asyncio
    async def test_known_chain(self, reconciler):
        result = await reconciler.reconcile(11155111)

        assert result.known
        assert result.warning is None
        assert result.network.name == "Sepolia"

    @pytest.mark.asyncio
    async def test_unknown_chain_warns(self, reconciler):
        with patch(FETCH_CHAIN_NAME, new=AsyncMock()) as fetch:
            result = await reconciler.reconcile(CUSTOM_CHAIN_ID)

        assert not result.known
        assert result.warning == UNKNOWN_NETWORK_MESSAGE
        assert result.network.chain_id == CUSTOM_CHAIN_ID
        assert result.network.name is None
        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_chain_name_from_registry(self, wallet):
        reconciler = NetworkReconciler(ProviderGateway(wallet), resolve_names=True)

        with patch(FETCH_CHAIN_NAME, new=AsyncMock(return_value="Anvil")) as fetch:
            result = await reconciler.reconcile(CUSTOM_CHAIN_ID)

        fetch.assert_awaited_once_with(CUSTOM_CHAIN_ID)
        assert result.network.name == "Anvil"
        assert result.warning == UNKNOWN_NETWORK_MESSAGE

    @pytest.mark.asyncio
    async def test_registry_failure_leaves_chain_unnamed(self, wallet):
        reconciler = NetworkReconciler(ProviderGateway(wallet), resolve_names=True)

        with patch(FETCH_CHAIN_NAME, new=AsyncMock(side_effect=httpx.ConnectError("offline"))):
            result = await reconciler.reconcile(CUSTOM_CHAIN_ID)

        assert result.network.name is None
        assert not result.known


class TestSwitch:

    @pytest.mark.asyncio
    async def test_switch_invokes_callback(self, wallet, reconciler):
        switched = []

        async def on_switched(config):
            switched.append(config.key)

        config = await reconciler.switch_to("Mainnet", on_switched=on_switched)

        assert config.chain_id == MAINNET_CHAIN_ID
        assert wallet.chain_id == MAINNET_CHAIN_ID
        assert switched == ["mainnet"]

    @pytest.mark.asyncio
    async def test_unknown_key(self, wallet, reconciler):
        with pytest.raises(ConfigurationError):
            await reconciler.switch_to("atlantis")
        assert wallet.method_calls("wallet_switchEthereumChain") == []

    @pytest.mark.asyncio
    async def test_custom_network_table(self, wallet):
        table = {"local": KNOWN_NETWORKS["localhost"]}
        reconciler = NetworkReconciler(ProviderGateway(wallet), networks=table, resolve_names=False)

        config = await reconciler.switch_to("local")
        assert config.chain_id == 1337
        assert (await reconciler.reconcile(11155111)).known is False

        with pytest.raises(ConfigurationError):
            await reconciler.switch_to("sepolia")
