"""
EVM Network and Contract Configuration

Provides the static table of known networks, the configured contract address,
environment-aware RPC URL construction, and the ether/wei conversion used at
the input boundary.

Environment Variables:
    - INVENTORY_CONTRACT_ADDRESS: Deployed inventory contract (defaults to the
      public Sepolia deployment)
    - INVENTORY_RPC_URL: Explicit RPC endpoint override for the local wallet
    - INVENTORY_RESOLVE_CHAIN_NAMES: "1"/"true" to look up unknown chains in
      the ethereum-lists registry
    - EVM_PRIVATE_KEY: Development signer key for LocalWalletProvider
    - EVM_INFURA_KEY: Infrastructure key used to fill premium RPC templates
"""

import os
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Union

import dotenv
import httpx
from pydantic import BaseModel, Field
from web3 import Web3

from ...engine.exceptions import ConfigurationError

dotenv.load_dotenv()


#: Public deployment of SecretInventoryManagement used when no override is set.
DEFAULT_CONTRACT_ADDRESS: str = "0x306F479e7ebabF08c305db0b4Da80708CEd9E22e"

#: Contract fields are fixed-width unsigned integers.
UINT32_MAX: int = 2**32 - 1
UINT64_MAX: int = 2**64 - 1

CUSTOM_NETWORK_NAME: str = "Custom Network"

CHAIN_REGISTRY_URL: str = (
    "https://raw.githubusercontent.com/ethereum-lists/chains/master/_data/chains/eip155-{chain_id}.json"
)


class NativeCurrency(BaseModel):
    name: str
    symbol: str
    decimals: int = 18


class NetworkConfig(BaseModel):
    """Known network description, shaped after ``wallet_addEthereumChain`` params."""
    key: str = Field(..., description="Short lookup key (e.g. 'sepolia')")
    chain_id: int = Field(..., gt=0)
    chain_name: str
    native_currency: NativeCurrency
    rpc_url: Optional[str] = Field(None, description="Premium RPC template with {RPC_KEYS} placeholder")
    public_rpc_url: str = Field(..., description="Public RPC endpoint (fallback when no infra key)")
    block_explorer_url: Optional[str] = None

    @property
    def hex_chain_id(self) -> str:
        return hex(self.chain_id)

    def add_chain_params(self) -> Dict[str, Any]:
        """Parameters for ``wallet_addEthereumChain``."""
        params: Dict[str, Any] = {
            "chainId": self.hex_chain_id,
            "chainName": self.chain_name,
            "nativeCurrency": self.native_currency.model_dump(),
            "rpcUrls": [self.public_rpc_url],
        }
        if self.block_explorer_url:
            params["blockExplorerUrls"] = [self.block_explorer_url]
        return params


# Raw network configuration data.
# Premium RPC is used when EVM_INFURA_KEY is set, otherwise the public RPC is used.
_KNOWN_NETWORKS_DATA: Dict[str, Dict[str, Any]] = {
    "sepolia": {
        "chain_id": 11155111,
        "chain_name": "Sepolia",
        "native_currency": {"name": "ETH", "symbol": "ETH", "decimals": 18},
        "rpc_url": "https://sepolia.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://rpc.sepolia.org",
        "block_explorer_url": "https://sepolia.etherscan.io",
    },
    "mainnet": {
        "chain_id": 1,
        "chain_name": "Ethereum Mainnet",
        "native_currency": {"name": "ETH", "symbol": "ETH", "decimals": 18},
        "rpc_url": "https://mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://eth.llamarpc.com",
        "block_explorer_url": "https://etherscan.io",
    },
    "localhost": {
        "chain_id": 1337,
        "chain_name": "Local Network",
        "native_currency": {"name": "ETH", "symbol": "ETH", "decimals": 18},
        "rpc_url": None,
        "public_rpc_url": "http://127.0.0.1:8545",
        "block_explorer_url": None,
    },
}

KNOWN_NETWORKS: Dict[str, NetworkConfig] = {
    key: NetworkConfig(key=key, **data) for key, data in _KNOWN_NETWORKS_DATA.items()
}


def get_network(key: str) -> NetworkConfig:
    """
    Look up a known network by key.

    Raises:
        ConfigurationError: If the key is not in the known-network table.
    """
    try:
        return KNOWN_NETWORKS[key.strip().lower()]
    except (KeyError, AttributeError):
        raise ConfigurationError(
            f"Unknown network '{key}'. Known networks: {', '.join(sorted(KNOWN_NETWORKS))}"
        ) from None


def get_network_by_chain_id(
    chain_id: int,
    networks: Optional[Dict[str, NetworkConfig]] = None,
) -> Optional[NetworkConfig]:
    for config in (networks or KNOWN_NETWORKS).values():
        if config.chain_id == chain_id:
            return config
    return None


def get_rpc_url(chain_id: int, infra_key: Optional[str] = None) -> Optional[str]:
    """
    Resolve the RPC URL for a known chain.

    The premium template is filled when an infrastructure key is available,
    otherwise the public endpoint is returned. Unknown chains yield None.
    """
    config = get_network_by_chain_id(chain_id)
    if config is None:
        return None
    if infra_key and config.rpc_url:
        return config.rpc_url.replace("{RPC_KEYS}", infra_key)
    return config.public_rpc_url


def get_contract_address_from_env() -> str:
    """
    Load the inventory contract address.

    Returns:
        str: Checksum address from INVENTORY_CONTRACT_ADDRESS, or the default deployment.

    Raises:
        ConfigurationError: If the configured value is not a valid address.
    """
    return normalize_contract_address(os.getenv("INVENTORY_CONTRACT_ADDRESS") or DEFAULT_CONTRACT_ADDRESS)


def normalize_contract_address(address: str) -> str:
    if not isinstance(address, str) or not Web3.is_address(address.strip()):
        raise ConfigurationError(f"Invalid contract address: {address!r}")
    return Web3.to_checksum_address(address.strip())


def get_private_key_from_env() -> Optional[str]:
    """
    Load the development signer key.

    Environment Variable:
        - EVM_PRIVATE_KEY: 0x-prefixed hex private key

    Note:
        Only LocalWalletProvider reads this. Browser wallets keep their own keys.
    """
    return os.getenv("EVM_PRIVATE_KEY")


def get_infra_key_from_env() -> Optional[str]:
    """Load the optional infrastructure API key (EVM_INFURA_KEY)."""
    return os.getenv("EVM_INFURA_KEY")


def get_rpc_url_override_from_env() -> Optional[str]:
    return os.getenv("INVENTORY_RPC_URL")


def resolve_chain_names_enabled() -> bool:
    return os.getenv("INVENTORY_RESOLVE_CHAIN_NAMES", "").strip().lower() in ("1", "true", "yes")


async def fetch_chain_name(chain_id: int, timeout: float = 10.0) -> Optional[str]:
    """
    Retrieve a chain's display name from the ethereum-lists registry.

    Returns:
        The registry ``name`` field, or None when the chain is not listed.

    Raises:
        httpx.RequestError: If a network-level error occurs.
        RuntimeError: If the response is not valid JSON.
    """
    url = CHAIN_REGISTRY_URL.format(chain_id=chain_id)
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.get(url)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        try:
            payload = response.json()
        except ValueError as json_exc:
            raise RuntimeError(
                f"Failed to decode JSON from {url}. Content-Type: {response.headers.get('Content-Type')}"
            ) from json_exc

    name = payload.get("name")
    return name if isinstance(name, str) and name.strip() else None


def ether_to_wei(amount: Union[str, int, float, Decimal]) -> int:
    """
    Convert a human-readable ether amount into wei.

    Raises:
        ValueError: If the amount is negative, malformed, or has sub-wei precision.
    """
    try:
        dec_amount = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e

    if not dec_amount.is_finite() or dec_amount < 0:
        raise ValueError("amount must be a non-negative number")

    scaled = dec_amount * (Decimal(10) ** 18)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"amount {amount!r} has more than 18 decimal places")

    return int(scaled)


def wei_to_ether(value: int) -> Decimal:
    if value < 0:
        raise ValueError("value must be non-negative")
    return Decimal(value) / (Decimal(10) ** 18)


def known_chain_ids() -> List[int]:
    return sorted(config.chain_id for config in KNOWN_NETWORKS.values())
