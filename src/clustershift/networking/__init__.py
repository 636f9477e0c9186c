"""
Cross-cluster networking fabrics.

Example:
    >>> from clustershift.networking import get_networking_capability
    >>> networking = get_networking_capability("submariner")
    >>> networking.headless_dns_name_for("mongo-0", "mongo", "db", "target")
    'mongo-0.target.mongo.db.svc.clusterset.local'
"""

from __future__ import annotations

from clustershift.exceptions import UnsupportedNetworkingToolError
from clustershift.networking.base import NetworkingCapability, ToolIdentifier
from clustershift.networking.linkerd import LinkerdNetworking
from clustershift.networking.skupper import SkupperNetworking
from clustershift.networking.submariner import SubmarinerNetworking

_CAPABILITIES: dict[ToolIdentifier, type[NetworkingCapability]] = {
    ToolIdentifier.SUBMARINER: SubmarinerNetworking,
    ToolIdentifier.SKUPPER: SkupperNetworking,
    ToolIdentifier.LINKERD: LinkerdNetworking,
}


def get_networking_capability(tool: str | ToolIdentifier) -> NetworkingCapability:
    """
    Create the capability for a networking fabric.

    Args:
        tool: Tool identifier or its name (case-insensitive).

    Raises:
        UnsupportedNetworkingToolError: If no capability exists for ``tool``.
    """
    if isinstance(tool, str):
        try:
            tool = ToolIdentifier(tool.strip().lower())
        except ValueError:
            raise UnsupportedNetworkingToolError(tool) from None
    return _CAPABILITIES[tool]()


__all__ = [
    "NetworkingCapability",
    "ToolIdentifier",
    "SubmarinerNetworking",
    "SkupperNetworking",
    "LinkerdNetworking",
    "get_networking_capability",
]
