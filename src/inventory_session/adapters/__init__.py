from .bases import ACCOUNTS_CHANGED, CHAIN_CHANGED, InjectedProvider

__all__ = [
    "ACCOUNTS_CHANGED",
    "CHAIN_CHANGED",
    "InjectedProvider",
]
