"""
Permission gating.

Maps the session's connection state and permission tier onto the capability
flags the render surface uses to enable manager-only actions. The gate is
advisory: the contract remains the authority and rejects unauthorized calls
on its own.
"""

from typing import Optional

from pydantic import BaseModel

from ..schemas.bases import CapabilitySet, ConnectionState, PermissionTier, Session, StatusLevel

MANAGER_BANNER = "Manager Access - You can add items and manage inventory"
LIMITED_BANNER = "Limited Access - Contact owner for manager authorization"

_ALL = CapabilitySet(
    can_add_item=True,
    can_authorize_manager=True,
    can_grant_access=True,
    can_emergency_pause=True,
)
_NONE = CapabilitySet()


class PermissionBanner(BaseModel):
    level: StatusLevel
    message: str


def derive_capabilities(connection_state: ConnectionState, permission_tier: PermissionTier) -> CapabilitySet:
    """All four capabilities are granted iff the session is Connected with the Manager tier."""
    if connection_state == ConnectionState.CONNECTED and permission_tier == PermissionTier.MANAGER:
        return _ALL
    return _NONE


class PermissionGate:
    """Capability view over session snapshots."""

    @staticmethod
    def capabilities(session: Session) -> CapabilitySet:
        return derive_capabilities(session.connection_state, session.permission_tier)

    @staticmethod
    def banner(session: Session) -> Optional[PermissionBanner]:
        """
        Advisory permission banner for a connected session.

        Returns:
            PermissionBanner, or None when the tier has not been resolved
        """
        if session.connection_state != ConnectionState.CONNECTED:
            return None
        if session.permission_tier == PermissionTier.MANAGER:
            return PermissionBanner(level=StatusLevel.SUCCESS, message=MANAGER_BANNER)
        if session.permission_tier == PermissionTier.NONE:
            return PermissionBanner(level=StatusLevel.WARNING, message=LIMITED_BANNER)
        return None
