"""
Provider Gateway

Wraps the injected wallet provider and exposes the account, network and
chain-switch operations the session needs, plus the two provider events
(account change, chain change) as typed messages.
"""

from typing import Any, Callable, Dict, List, Optional

from hexbytes import HexBytes
from loguru import logger
from web3 import AsyncWeb3

from .bases import ACCOUNTS_CHANGED, CHAIN_CHANGED, InjectedProvider
from .evm.bridge import build_web3
from .evm.constants import get_network_by_chain_id
from ..engine.events import AccountsChangedEvent, ChainChangedEvent, ProviderEvent
from ..engine.exceptions import ChainSwitchRejected, NoProviderInstalled, ProviderRpcError
from ..schemas.bases import NetworkInfo


def parse_chain_id(value: Any) -> int:
    """Accept the hex string wallets return as well as plain integers."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    raise ValueError(f"Unsupported chain id value: {value!r}")


class ProviderGateway:
    """
    Session-facing facade over an :class:`InjectedProvider`.

    Attributes:
        provider: The injected wallet, or None when no wallet is installed
    """

    def __init__(self, provider: Optional[InjectedProvider] = None) -> None:
        self.provider = provider

    @property
    def installed(self) -> bool:
        return self.provider is not None

    def _require_provider(self) -> InjectedProvider:
        if self.provider is None:
            raise NoProviderInstalled()
        return self.provider

    async def request_accounts(self) -> List[str]:
        """
        Ask the wallet for account access (may prompt the user).

        Returns:
            List[str]: Authorized accounts in checksum format

        Raises:
            NoProviderInstalled: If no wallet is injected.
            ProviderRpcError: If the user refuses access or no account is exposed.
        """
        provider = self._require_provider()
        accounts = await provider.request("eth_requestAccounts", [])
        if not accounts:
            raise ProviderRpcError(ProviderRpcError.UNAUTHORIZED, "No accounts authorized by the wallet")
        return self._checksum_accounts(accounts)

    async def selected_accounts(self) -> List[str]:
        """Accounts already exposed to the dApp, without prompting."""
        if self.provider is None:
            return []
        accounts = await self.provider.request("eth_accounts", [])
        return self._checksum_accounts(accounts or [])

    @staticmethod
    def _checksum_accounts(accounts: Any) -> List[str]:
        try:
            return [AsyncWeb3.to_checksum_address(account) for account in accounts]
        except (TypeError, ValueError) as exc:
            raise ProviderRpcError(
                ProviderRpcError.INTERNAL_ERROR, f"Wallet returned an invalid account list: {accounts!r}"
            ) from exc

    async def current_network(self) -> NetworkInfo:
        provider = self._require_provider()
        value = await provider.request("eth_chainId", [])
        try:
            chain_id = parse_chain_id(value)
        except ValueError as exc:
            raise ProviderRpcError(
                ProviderRpcError.INTERNAL_ERROR, f"Wallet returned an invalid chain id: {value!r}"
            ) from exc
        known = get_network_by_chain_id(chain_id)
        return NetworkInfo(chain_id=chain_id, name=known.chain_name if known else None)

    async def request_chain_switch(
        self,
        target_chain_id: int,
        add_chain_params: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Ask the wallet to switch to ``target_chain_id``.

        If the wallet does not know the chain (code 4902) and ``add_chain_params``
        are given, the chain is added with ``wallet_addEthereumChain`` and the
        switch is retried once.

        Raises:
            NoProviderInstalled: If no wallet is injected.
            ChainSwitchRejected: If the user declines or the wallet errors.
        """
        provider = self._require_provider()
        params = [{"chainId": hex(target_chain_id)}]
        try:
            await provider.request("wallet_switchEthereumChain", params)
        except ProviderRpcError as exc:
            if exc.code != ProviderRpcError.UNRECOGNIZED_CHAIN or not add_chain_params:
                logger.error(f"Chain switch to {target_chain_id} failed: {exc.message}")
                raise ChainSwitchRejected() from exc
            try:
                await provider.request("wallet_addEthereumChain", [add_chain_params])
                await provider.request("wallet_switchEthereumChain", params)
            except ProviderRpcError as add_exc:
                logger.error(f"Adding chain {target_chain_id} failed: {add_exc.message}")
                raise ChainSwitchRejected() from add_exc
        logger.info(f"Wallet switched to chain {target_chain_id}")

    async def get_code(self, address: str) -> bytes:
        provider = self._require_provider()
        code = await provider.request("eth_getCode", [address, "latest"])
        return bytes(HexBytes(code or "0x"))

    async def get_balance(self, address: str) -> int:
        provider = self._require_provider()
        balance = await provider.request("eth_getBalance", [address, "latest"])
        return parse_chain_id(balance) if balance is not None else 0

    def build_web3(self) -> AsyncWeb3:
        return build_web3(self._require_provider())

    def subscribe(self, listener: Callable[[ProviderEvent], None]) -> Callable[[], None]:
        """
        Register for account and chain change events.

        Args:
            listener: Called synchronously with an ``AccountsChangedEvent`` or
                ``ChainChangedEvent``

        Returns:
            Callable that removes the registration.
        """
        if self.provider is None:
            return lambda: None
        provider = self.provider

        def on_accounts(accounts: Any) -> None:
            listener(AccountsChangedEvent(
                accounts=[AsyncWeb3.to_checksum_address(account) for account in accounts or []]
            ))

        def on_chain(chain_id: Any) -> None:
            listener(ChainChangedEvent(chain_id=parse_chain_id(chain_id)))

        provider.on(ACCOUNTS_CHANGED, on_accounts)
        provider.on(CHAIN_CHANGED, on_chain)

        def unsubscribe() -> None:
            provider.remove_listener(ACCOUNTS_CHANGED, on_accounts)
            provider.remove_listener(CHAIN_CHANGED, on_chain)

        return unsubscribe
