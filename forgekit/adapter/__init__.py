"""
Hosting Adapter Package

Provider-agnostic access to issues, pull/merge requests, projects,
comments, milestones and releases. Supports GitHub and GitLab.
"""

from forgekit.adapter.types import (
    Comment,
    Commit,
    Issue,
    IssueState,
    Label,
    Milestone,
    Project,
    PullRequest,
    PullRequestState,
    Ref,
    Release,
    ReleaseAsset,
    User,
)
from forgekit.adapter.errors import (
    AdapterError,
    NotFound,
    NotMergeable,
    NotSupported,
    ProjectNotFound,
    UnsupportedAuthScheme,
)
from forgekit.adapter.capabilities import Capability
from forgekit.adapter.protocol import HostingAdapter
from forgekit.adapter.registry import create_adapter, from_config

__all__ = [
    "Comment",
    "Commit",
    "Issue",
    "IssueState",
    "Label",
    "Milestone",
    "Project",
    "PullRequest",
    "PullRequestState",
    "Ref",
    "Release",
    "ReleaseAsset",
    "User",
    "AdapterError",
    "NotFound",
    "NotMergeable",
    "NotSupported",
    "ProjectNotFound",
    "UnsupportedAuthScheme",
    "Capability",
    "HostingAdapter",
    "create_adapter",
    "from_config",
]
