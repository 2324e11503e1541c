"""
Abstract Base Class for Injected Wallet Providers

Defines the EIP-1193 shaped interface every wallet provider implements:
an async ``request(method, params)`` call plus ``on`` / ``remove_listener``
for the ``accountsChanged`` and ``chainChanged`` events.

Implementations:
    - LocalWalletProvider (adapters/evm/wallet.py): eth_account key + JSON-RPC node
    - Any bridge to a real browser wallet can implement the same interface
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

ACCOUNTS_CHANGED = "accountsChanged"
CHAIN_CHANGED = "chainChanged"

ProviderListener = Callable[[Any], None]


class InjectedProvider(ABC):
    """
    EIP-1193 wallet provider.

    Subclasses implement :meth:`request` and call :meth:`emit` when the wallet
    reports an account or chain change. Listeners are plain callables invoked
    synchronously with the event payload: a list of addresses for
    ``accountsChanged`` and a hex chain ID string for ``chainChanged``.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[ProviderListener]] = {}

    @abstractmethod
    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Send a JSON-RPC request through the wallet.

        Args:
            method: JSON-RPC method name (e.g. ``eth_requestAccounts``)
            params: Positional parameters

        Returns:
            The ``result`` member of the JSON-RPC response.

        Raises:
            ProviderRpcError: If the wallet or node returns an error.
        """
        pass

    def on(self, event: str, listener: ProviderListener) -> None:
        self._listeners.setdefault(event, []).append(listener)

    def remove_listener(self, event: str, listener: ProviderListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, payload: Any) -> None:
        """Deliver a provider event to every registered listener."""
        logger.debug(f"Provider event {event}: {payload}")
        for listener in list(self._listeners.get(event, [])):
            listener(payload)
