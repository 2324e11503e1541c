"""
AsyncWeb3 transport over an injected wallet provider.

web3.py talks JSON-RPC through a provider object. ``InjectedWeb3Provider``
routes every request to an :class:`InjectedProvider`, so contract reads,
gas estimation and ``eth_sendTransaction`` all go through the wallet, the same
path a browser dApp uses.
"""

import itertools
from typing import Any

from web3 import AsyncWeb3
from web3.providers.async_base import AsyncBaseProvider
from web3.types import RPCEndpoint, RPCResponse

from ..bases import InjectedProvider
from ...engine.exceptions import ProviderRpcError


class InjectedWeb3Provider(AsyncBaseProvider):
    """web3.py async provider backed by an EIP-1193 wallet."""

    def __init__(self, injected: InjectedProvider) -> None:
        super().__init__()
        self._injected = injected
        self._request_ids = itertools.count(1)

    async def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        request_id = next(self._request_ids)
        try:
            result = await self._injected.request(str(method), list(params or []))
        except ProviderRpcError as exc:
            error = {"code": exc.code, "message": exc.message}
            if exc.data is not None:
                error["data"] = exc.data
            return {"jsonrpc": "2.0", "id": request_id, "error": error}
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def is_connected(self, show_traceback: bool = False) -> bool:
        try:
            await self._injected.request("eth_chainId", [])
        except ProviderRpcError:
            if show_traceback:
                raise
            return False
        return True


def build_web3(injected: InjectedProvider) -> AsyncWeb3:
    """Create an AsyncWeb3 instance whose transport is the injected wallet."""
    return AsyncWeb3(InjectedWeb3Provider(injected))
