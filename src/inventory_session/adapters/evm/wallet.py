"""
Local Development Wallet

``LocalWalletProvider`` behaves like an injected browser wallet backed by a
single ``eth_account`` key and a JSON-RPC node. It exists so the session can be
driven from scripts, tests against a local chain, or the HTTP bridge without a
browser extension.

Handled locally:
    - eth_requestAccounts / eth_accounts
    - eth_sendTransaction (signed with the local key, sent as raw transaction)
    - wallet_switchEthereumChain / wallet_addEthereumChain (RPC endpoint swap)

Everything else is forwarded to the node unchanged.

Note:
    Development use only. Key management is out of scope for the session.
"""

from typing import Any, Dict, List, Optional

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3

from ..bases import ACCOUNTS_CHANGED, CHAIN_CHANGED, InjectedProvider
from .constants import (
    get_infra_key_from_env,
    get_private_key_from_env,
    get_rpc_url,
    get_rpc_url_override_from_env,
)
from ...engine.exceptions import ConfigurationError, ProviderRpcError

_QUANTITY_FIELDS = ("gas", "gasPrice", "maxFeePerGas", "maxPriorityFeePerGas", "value", "nonce", "chainId")


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    return int(value)


class LocalWalletProvider(InjectedProvider):
    """
    Injected-provider implementation with a local signing key.

    Args:
        private_key: Hex private key. Falls back to ``EVM_PRIVATE_KEY``.
        rpc_url: Node endpoint. Falls back to ``INVENTORY_RPC_URL``, then to the
            known-network RPC for ``chain_id``.
        chain_id: Chain to start on when no explicit RPC URL is given
        infra_key: Infrastructure key for premium RPC templates. Falls back to
            ``EVM_INFURA_KEY``.
        request_timeout: HTTP timeout in seconds for node requests

    Raises:
        ConfigurationError: If no key or no RPC endpoint can be resolved.
    """

    def __init__(
        self,
        private_key: Optional[str] = None,
        rpc_url: Optional[str] = None,
        chain_id: int = 11155111,
        infra_key: Optional[str] = None,
        request_timeout: int = 60,
    ) -> None:
        super().__init__()
        key = private_key or get_private_key_from_env()
        if not key:
            raise ConfigurationError("EVM_PRIVATE_KEY is not set")
        self.account = Account.from_key(key)
        self.infra_key = infra_key or get_infra_key_from_env()
        self.request_timeout = request_timeout
        self._authorized = False
        self._custom_rpc: Dict[int, str] = {}

        url = rpc_url or get_rpc_url_override_from_env() or get_rpc_url(chain_id, self.infra_key)
        if not url:
            raise ConfigurationError(f"No RPC endpoint configured for chain {chain_id}")
        self._set_endpoint(url)

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def _set_endpoint(self, url: str) -> None:
        self._rpc_url = url
        self._node = AsyncWeb3.AsyncHTTPProvider(url, request_kwargs={"timeout": self.request_timeout})
        logger.debug(f"Local wallet using RPC endpoint {url}")

    async def _forward(self, method: str, params: List[Any]) -> Any:
        response = await self._node.make_request(method, params)
        error = response.get("error")
        if error:
            if isinstance(error, dict):
                raise ProviderRpcError(error.get("code", ProviderRpcError.INTERNAL_ERROR), error.get("message"), error.get("data"))
            raise ProviderRpcError(ProviderRpcError.INTERNAL_ERROR, str(error))
        return response.get("result")

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        params = list(params or [])

        if method == "eth_requestAccounts":
            if not self._authorized:
                self._authorized = True
                logger.info(f"Local wallet exposed account {self.address}")
            return [self.address]

        if method == "eth_accounts":
            return [self.address] if self._authorized else []

        if method == "eth_sendTransaction":
            return await self._send_transaction(params[0])

        if method == "wallet_switchEthereumChain":
            await self._switch_chain(_to_int(params[0]["chainId"]))
            return None

        if method == "wallet_addEthereumChain":
            chain = params[0]
            rpc_urls = chain.get("rpcUrls") or []
            if not rpc_urls:
                raise ProviderRpcError(-32602, "wallet_addEthereumChain requires rpcUrls")
            self._custom_rpc[_to_int(chain["chainId"])] = rpc_urls[0]
            return None

        return await self._forward(method, params)

    async def _switch_chain(self, chain_id: int) -> None:
        url = self._custom_rpc.get(chain_id) or get_rpc_url(chain_id, self.infra_key)
        if not url:
            raise ProviderRpcError(
                ProviderRpcError.UNRECOGNIZED_CHAIN,
                f"Unrecognized chain ID {hex(chain_id)}. Try adding the chain using wallet_addEthereumChain first.",
            )
        self._set_endpoint(url)
        self.emit(CHAIN_CHANGED, hex(chain_id))

    async def _send_transaction(self, tx: Dict[str, Any]) -> str:
        sender = tx.get("from")
        if sender and sender.lower() != self.address.lower():
            raise ProviderRpcError(ProviderRpcError.UNAUTHORIZED, f"Account {sender} is not managed by this wallet")

        tx_dict: Dict[str, Any] = {k: v for k, v in tx.items() if k != "from"}
        for field in _QUANTITY_FIELDS:
            if field in tx_dict:
                tx_dict[field] = _to_int(tx_dict[field])

        if "nonce" not in tx_dict:
            tx_dict["nonce"] = _to_int(await self._forward("eth_getTransactionCount", [self.address, "pending"]))
        if "chainId" not in tx_dict:
            tx_dict["chainId"] = _to_int(await self._forward("eth_chainId", []))
        if "gas" not in tx_dict:
            estimate_params = {**tx, "from": self.address}
            tx_dict["gas"] = _to_int(await self._forward("eth_estimateGas", [estimate_params]))
        if "gasPrice" not in tx_dict and "maxFeePerGas" not in tx_dict:
            tx_dict["gasPrice"] = _to_int(await self._forward("eth_gasPrice", []))

        signed_tx = self.account.sign_transaction(tx_dict)
        tx_hash = await self._forward("eth_sendRawTransaction", [AsyncWeb3.to_hex(signed_tx.raw_transaction)])
        logger.info(f"Local wallet broadcast transaction {tx_hash}")
        return tx_hash

    def disconnect(self) -> None:
        """Revoke account access, as a browser wallet does on disconnect."""
        self._authorized = False
        self.emit(ACCOUNTS_CHANGED, [])

    def switch_account(self, private_key: str) -> None:
        self.account = Account.from_key(private_key)
        self._authorized = True
        self.emit(ACCOUNTS_CHANGED, [self.address])
