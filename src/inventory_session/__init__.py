"""
inventory_session - client-side session controller for the
SecretInventoryManagement contract, reached through an injected wallet.
"""

from .adapters.bases import InjectedProvider
from .adapters.provider import ProviderGateway
from .adapters.evm.wallet import LocalWalletProvider
from .engine.events import EventBus
from .engine.session import SessionController

__version__ = "0.1.0"

__all__ = [
    "InjectedProvider",
    "ProviderGateway",
    "LocalWalletProvider",
    "EventBus",
    "SessionController",
]
