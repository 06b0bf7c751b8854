"""
Hosting adapter protocol.

Defines the interface every provider adapter implements. Structural typing:
adapters do not inherit from this class.
"""

from typing import Any, Protocol, runtime_checkable

from forgekit.adapter.capabilities import Capability
from forgekit.adapter.types import (
    Comment,
    Commit,
    Issue,
    Label,
    Milestone,
    Project,
    PullRequest,
    Release,
    ReleaseAsset,
)


@runtime_checkable
class HostingAdapter(Protocol):
    """
    Provider-agnostic interface for Git hosting services.

    Implementations:
    - GitHubAdapter
    - GitLabAdapter

    Operations on feature families missing from ``capabilities`` raise
    NotSupported without contacting the provider.
    """

    @property
    def name(self) -> str:
        """Provider identifier ("github", "gitlab")."""
        ...

    @property
    def capabilities(self) -> frozenset[Capability]:
        """Feature families this provider backs."""
        ...

    # --- Authentication ---

    def authenticate(self) -> bool:
        """
        Apply the configured credentials.

        Raises:
            UnsupportedAuthScheme: Configured scheme not accepted by provider
        """
        ...

    def is_authenticated(self) -> bool:
        """Probe the provider with the current credentials."""
        ...

    def get_token_generation_url(self) -> str | None:
        """Web page where the user can create an access token, if any."""
        ...

    # --- Projects ---

    def get_current_project(self) -> Project:
        """
        The project matching the adapter's owner/repository, memoized.

        Raises:
            ProjectNotFound: No accessible project matches
        """
        ...

    def create_fork(self, owner: str) -> Project:
        """Fork the current project into ``owner``."""
        ...

    # --- Issues ---

    def open_issue(self, subject: str, body: str, options: dict[str, Any] | None = None) -> Issue:
        ...

    def get_issue(self, number: int) -> Issue:
        ...

    def get_issue_url(self, number: int) -> str:
        ...

    def get_issues(self, filters: dict[str, Any] | None = None) -> list[Issue]:
        """
        List issues.

        Args:
            filters: Optional {"state", "creator", "assignee"}
        """
        ...

    def update_issue(self, number: int, fields: dict[str, Any]) -> Issue:
        """
        Update canonical fields (title, body, state, labels, assignee, milestone).

        Raises:
            NotFound: ``assignee`` does not name an existing user
        """
        ...

    def close_issue(self, number: int) -> Issue:
        ...

    # --- Comments ---

    def create_comment(self, number: int, body: str) -> Comment:
        ...

    def get_comments(self, number: int) -> list[Comment]:
        ...

    # --- Labels & milestones ---

    def get_labels(self) -> list[Label]:
        ...

    def get_milestones(self, filters: dict[str, Any] | None = None) -> list[Milestone]:
        ...

    # --- Pull requests ---

    def open_pull_request(
        self,
        base: str,
        head: str,
        subject: str,
        body: str,
        options: dict[str, Any] | None = None,
    ) -> PullRequest:
        """
        Open a pull request.

        Args:
            base: Target branch
            head: Source as "owner:branch" (or just "branch")
        """
        ...

    def get_pull_request(self, number: int) -> PullRequest:
        ...

    def get_pull_request_url(self, number: int) -> str:
        ...

    def get_pull_requests(self, state: str | None = None) -> list[PullRequest]:
        """
        List pull requests whose canonical state matches.

        Args:
            state: "open", "closed", "merged", or None/"all"
        """
        ...

    def get_pull_request_commits(self, number: int) -> list[Commit]:
        ...

    def merge_pull_request(self, number: int, message: str) -> PullRequest:
        """
        Raises:
            NotMergeable: The provider rejected the merge
        """
        ...

    def close_pull_request(self, number: int) -> PullRequest:
        ...

    # --- Releases ---

    def create_release(self, name: str, options: dict[str, Any] | None = None) -> Release:
        ...

    def get_releases(self) -> list[Release]:
        ...

    def remove_release(self, release_id: int) -> None:
        ...

    def create_release_asset(
        self,
        release_id: int,
        name: str,
        content_type: str,
        content: bytes,
    ) -> ReleaseAsset:
        ...
