"""
Contract verification tests: presence check, interface check, triple-keyed cache.
"""

import pytest

from test_mocks import (
    CONTRACT_ADDRESS,
    MOCK_CODE,
    OTHER_ADDRESS,
    SEPOLIA_CHAIN_ID,
    FakeBinding,
    FakeWallet,
)

from inventory_session.adapters.evm.verifies import ContractVerifier
from inventory_session.adapters.provider import ProviderGateway
from inventory_session.engine.exceptions import ContractNotDeployed, ErrorKind, InterfaceMismatch, QueryFailed


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def verifier(wallet):
    return ContractVerifier(ProviderGateway(wallet))


class TestVerify:

    @pytest.mark.asyncio
    async def test_success_is_cached_per_triple(self, wallet, verifier):
        binding = FakeBinding()

        result = await verifier.verify(binding)
        again = await verifier.verify(binding)

        assert result.code_size == len(MOCK_CODE[2:]) // 2
        assert again is result
        assert len(wallet.method_calls("eth_getCode")) == 1
        assert binding.stats_calls == 1
        assert verifier.is_verified(CONTRACT_ADDRESS.lower(), SEPOLIA_CHAIN_ID, binding.signer.lower())

    @pytest.mark.asyncio
    async def test_new_signer_reverifies(self, wallet, verifier):
        await verifier.verify(FakeBinding())
        other = FakeBinding(signer=OTHER_ADDRESS)

        assert not verifier.is_verified(*other.triple)
        await verifier.verify(other)

        assert len(wallet.method_calls("eth_getCode")) == 2
        assert verifier.last_result.signer == OTHER_ADDRESS

    @pytest.mark.asyncio
    async def test_no_code(self, wallet, verifier):
        await verifier.verify(FakeBinding())
        wallet.code = "0x"
        binding = FakeBinding(chain_id=1)

        with pytest.raises(ContractNotDeployed) as exc_info:
            await verifier.verify(binding)

        assert exc_info.value.kind == ErrorKind.CONTRACT_NOT_DEPLOYED
        assert binding.stats_calls == 0
        assert verifier.last_result is None

    @pytest.mark.asyncio
    async def test_stats_failure(self, verifier):
        binding = FakeBinding(stats_error=QueryFailed(reason="getContractStats: execution reverted"))

        with pytest.raises(InterfaceMismatch) as exc_info:
            await verifier.verify(binding)

        assert exc_info.value.message == "Contract interface mismatch: getContractStats: execution reverted"
        assert not verifier.is_verified(*binding.triple)

    @pytest.mark.asyncio
    async def test_invalidate(self, verifier):
        binding = FakeBinding()
        await verifier.verify(binding)

        verifier.invalidate()

        assert not verifier.is_verified(*binding.triple)


class TestInspect:

    @pytest.mark.asyncio
    async def test_deployed(self):
        verifier = ContractVerifier(ProviderGateway(FakeWallet(balance=5)))

        report = await verifier.inspect(CONTRACT_ADDRESS)

        assert report.deployed
        assert report.network_name == "Sepolia"
        assert report.balance_wei == 5
        assert report.summary() == "Contract found. It may still have interface issues."

    @pytest.mark.asyncio
    async def test_not_deployed(self):
        verifier = ContractVerifier(ProviderGateway(FakeWallet(code="0x")))

        report = await verifier.inspect(CONTRACT_ADDRESS)

        assert not report.deployed
        assert report.code_size == 0
        assert "No smart contract is deployed" in report.summary()
