from .binding import ContractBinding
from .bridge import InjectedWeb3Provider, build_web3
from .constants import (
    KNOWN_NETWORKS,
    NetworkConfig,
    get_contract_address_from_env,
    get_network,
    get_network_by_chain_id,
)
from .errors import classify_error, query_error
from .networks import NetworkReconciler, ReconcileResult
from .verifies import ContractVerifier
from .wallet import LocalWalletProvider

__all__ = [
    "ContractBinding",
    "InjectedWeb3Provider",
    "build_web3",
    "KNOWN_NETWORKS",
    "NetworkConfig",
    "get_contract_address_from_env",
    "get_network",
    "get_network_by_chain_id",
    "classify_error",
    "query_error",
    "NetworkReconciler",
    "ReconcileResult",
    "ContractVerifier",
    "LocalWalletProvider",
]
