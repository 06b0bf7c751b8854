"""
Adapter capabilities.

Each adapter declares which feature families its provider backs. Methods of
an undeclared family raise NotSupported before any network call.
"""

from enum import Enum
from typing import TYPE_CHECKING

from forgekit.adapter.errors import NotSupported
from forgekit.logger import get_logger

if TYPE_CHECKING:
    from forgekit.adapter.protocol import HostingAdapter

log = get_logger("capabilities")


class Capability(Enum):
    """Feature families a hosting provider may support."""
    ISSUES = "issues"
    COMMENTS = "comments"
    LABELS = "labels"
    MILESTONES = "milestones"
    PULL_REQUESTS = "pull_requests"
    FORKING = "forking"
    RELEASES = "releases"


# Plural noun used in "... are not supported" messages
CAPABILITY_FEATURES = {
    Capability.ISSUES: "issues",
    Capability.COMMENTS: "comments",
    Capability.LABELS: "labels",
    Capability.MILESTONES: "milestones",
    Capability.PULL_REQUESTS: "pull requests",
    Capability.FORKING: "forks",
    Capability.RELEASES: "releases",
}


def has_capability(adapter: "HostingAdapter", capability: Capability) -> bool:
    return capability in adapter.capabilities


def unsupported(adapter: "HostingAdapter", capability: Capability, operation: str) -> NotSupported:
    """Build (and log) the NotSupported error for a capability gap."""
    log.warning("Unsupported operation", provider=adapter.name, operation=operation,
                capability=capability.value)
    return NotSupported(adapter.name, operation, CAPABILITY_FEATURES[capability])


def require(adapter: "HostingAdapter", capability: Capability, operation: str) -> None:
    """
    Raise NotSupported when the adapter does not declare the capability.

    Raises:
        NotSupported: Carrying provider, operation and feature name
    """
    if not has_capability(adapter, capability):
        raise unsupported(adapter, capability, operation)
