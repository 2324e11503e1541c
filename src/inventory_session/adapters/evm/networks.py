"""
Network Reconciliation

Compares the wallet's active chain with the known-network table. Unknown
chains are allowed: they produce a warning and never block the connection.
Explicit switches go through the wallet and are followed by a full session
reset, driven by the caller-supplied ``on_switched`` callback.
"""

from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional

import httpx
from loguru import logger
from pydantic import BaseModel

from .constants import (
    KNOWN_NETWORKS,
    NetworkConfig,
    fetch_chain_name,
    get_network,
    get_network_by_chain_id,
    resolve_chain_names_enabled,
)
from ...engine.exceptions import ConfigurationError
from ...schemas.bases import NetworkInfo

if TYPE_CHECKING:
    from ..provider import ProviderGateway

UNKNOWN_NETWORK_MESSAGE = "Custom network detected. Make sure contract is deployed on this network."

SwitchCallback = Callable[[NetworkConfig], Awaitable[None]]


class ReconcileResult(BaseModel):
    """
    Outcome of comparing the active chain with the known networks.

    Attributes:
        network: Active chain with its resolved name (None if unnamed)
        known: True if the chain is in the known-network table
        warning: Non-fatal warning text for unknown chains
    """
    network: NetworkInfo
    known: bool
    warning: Optional[str] = None


class NetworkReconciler:
    """
    Known-network checks and wallet-driven chain switches.

    Args:
        gateway: Provider gateway used for chain switches
        networks: Known-network table (defaults to ``KNOWN_NETWORKS``)
        resolve_names: Look up unknown chains in the public registry. Defaults
            to the ``INVENTORY_RESOLVE_CHAIN_NAMES`` environment setting.
    """

    def __init__(
        self,
        gateway: "ProviderGateway",
        networks: Optional[Dict[str, NetworkConfig]] = None,
        resolve_names: Optional[bool] = None,
    ) -> None:
        self.gateway = gateway
        self.networks = networks or KNOWN_NETWORKS
        self.resolve_names = resolve_chain_names_enabled() if resolve_names is None else resolve_names

    async def reconcile(self, chain_id: int) -> ReconcileResult:
        known = get_network_by_chain_id(chain_id, self.networks)
        if known is not None:
            logger.debug(f"Current network chain ID: {chain_id} ({known.chain_name})")
            return ReconcileResult(network=NetworkInfo(chain_id=chain_id, name=known.chain_name), known=True)

        logger.warning(f"Unknown chain ID {chain_id}: {UNKNOWN_NETWORK_MESSAGE}")
        name = await self._lookup_name(chain_id) if self.resolve_names else None
        return ReconcileResult(
            network=NetworkInfo(chain_id=chain_id, name=name),
            known=False,
            warning=UNKNOWN_NETWORK_MESSAGE,
        )

    async def _lookup_name(self, chain_id: int) -> Optional[str]:
        # Registry lookups are cosmetic; failures leave the chain unnamed.
        try:
            return await fetch_chain_name(chain_id)
        except (httpx.HTTPError, RuntimeError) as exc:
            logger.warning(f"Chain registry lookup failed for {chain_id}: {exc}")
            return None

    async def switch_to(self, network_key: str, on_switched: Optional[SwitchCallback] = None) -> NetworkConfig:
        """
        Ask the wallet to switch to a known network.

        Args:
            network_key: Key in the known-network table (e.g. ``"sepolia"``)
            on_switched: Awaited after the wallet confirms the switch

        Returns:
            NetworkConfig: The network switched to

        Raises:
            ConfigurationError: If the key is unknown.
            ChainSwitchRejected: If the user declines or the wallet errors.
        """
        config = self._network(network_key)
        await self.gateway.request_chain_switch(config.chain_id, config.add_chain_params())
        logger.info(f"Switched to {config.chain_name}. Reconnecting...")
        if on_switched is not None:
            await on_switched(config)
        return config

    def _network(self, network_key: str) -> NetworkConfig:
        if self.networks is KNOWN_NETWORKS:
            return get_network(network_key)
        config = self.networks.get(str(network_key).strip().lower())
        if config is None:
            raise ConfigurationError(f"Unknown network '{network_key}'")
        return config
