"""Hosting adapter implementations."""

from forgekit.adapter.providers.github import GitHubAdapter
from forgekit.adapter.providers.gitlab import GitLabAdapter

__all__ = ["GitHubAdapter", "GitLabAdapter"]
