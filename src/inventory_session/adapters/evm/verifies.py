"""
Contract Verification

Two-step check that the configured address hosts the inventory contract on the
active chain:

1. Presence: ``eth_getCode`` must return non-empty bytecode.
2. Interface: ``getContractStats()`` must answer and decode.

A successful verification is cached for exactly one
``(address, chain_id, signer)`` triple. Any other triple, or an explicit
:meth:`ContractVerifier.invalidate`, forces the checks to run again.
"""

from typing import TYPE_CHECKING, Optional, Tuple

from loguru import logger

from .binding import ContractBinding
from ...engine.exceptions import ContractNotDeployed, InterfaceMismatch, QueryFailed
from ...schemas.bases import ContractInspection, VerificationResult

if TYPE_CHECKING:
    from ..provider import ProviderGateway

Triple = Tuple[str, int, str]


class ContractVerifier:
    """Verifies the contract for a binding and remembers the last success."""

    def __init__(self, gateway: "ProviderGateway") -> None:
        self.gateway = gateway
        self._verified: Optional[VerificationResult] = None

    @staticmethod
    def _triple_of(result: VerificationResult) -> Triple:
        return result.address, result.chain_id, result.signer

    def is_verified(self, address: str, chain_id: int, signer: str) -> bool:
        if self._verified is None:
            return False
        cached_address, cached_chain, cached_signer = self._triple_of(self._verified)
        return (
            cached_address.lower() == address.lower()
            and cached_chain == chain_id
            and cached_signer.lower() == signer.lower()
        )

    @property
    def last_result(self) -> Optional[VerificationResult]:
        return self._verified

    def invalidate(self) -> None:
        if self._verified is not None:
            logger.info(f"Verification cache cleared for {self._verified.address}")
        self._verified = None

    async def verify(self, binding: ContractBinding) -> VerificationResult:
        """
        Run presence and interface checks for ``binding``.

        A cached success for the same triple is returned without any call.

        Args:
            binding: Contract binding for the current address, chain and signer

        Returns:
            VerificationResult: Code size and the statistics read during the check

        Raises:
            ContractNotDeployed: If the address holds no bytecode.
            InterfaceMismatch: If ``getContractStats`` reverts or fails to decode.
        """
        address, chain_id, signer = binding.triple
        if self.is_verified(address, chain_id, signer):
            return self._verified

        # A new triple replaces whatever was cached before.
        self._verified = None

        logger.info(f"Verifying contract at {address} on chain {chain_id}")
        code = await self.gateway.get_code(address)
        if not code:
            logger.error(f"No contract deployed at address: {address}")
            raise ContractNotDeployed()
        logger.debug(f"Contract code found, length: {len(code)}")

        try:
            stats = await binding.get_contract_stats()
        except QueryFailed as exc:
            logger.error(f"Contract interface verification failed: {exc.reason}")
            raise InterfaceMismatch(f"Contract interface mismatch: {exc.reason}") from exc

        result = VerificationResult(
            address=address,
            chain_id=chain_id,
            signer=signer,
            code_size=len(code),
            stats=stats,
        )
        self._verified = result
        logger.info(f"Contract verification successful, stats: {stats}")
        return result

    async def inspect(self, address: str) -> ContractInspection:
        """
        Diagnostic report on ``address`` for the active chain.

        Unlike :meth:`verify`, this never raises for a missing contract; it
        reports what it finds. Provider errors still propagate.
        """
        network = await self.gateway.current_network()
        code = await self.gateway.get_code(address)
        balance = await self.gateway.get_balance(address)
        return ContractInspection(
            address=address,
            chain_id=network.chain_id,
            network_name=network.name,
            code_size=len(code),
            balance_wei=balance,
            deployed=bool(code),
        )
