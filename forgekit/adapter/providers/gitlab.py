"""
GitLab hosting adapter.

Implements the HostingAdapter protocol on top of the GitLab REST v4 API.
Everything is scoped to the project resolved from owner/repository, and
issues and merge requests are addressed by their project-local ``iid``.
Labels, releases and forks are not offered through this adapter.
"""

from typing import Any

from forgekit.adapter.auth import AuthScheme, AuthState, AuthStrategy, Credentials
from forgekit.adapter.capabilities import Capability, unsupported
from forgekit.adapter.config import get_adapter_config, normalize_adapter_config
from forgekit.adapter.errors import NotFound, NotMergeable
from forgekit.adapter.http import GitLabRestClient, ProviderError, not_found_as
from forgekit.adapter.normalize import (
    gitlab_issue_payload,
    issue_state_filter,
    normalize_gitlab_commit,
    normalize_gitlab_issue,
    normalize_gitlab_merge_request,
    normalize_gitlab_milestone,
    normalize_gitlab_note,
    normalize_gitlab_project,
    pull_request_state_filter,
)
from forgekit.adapter.pagination import fetch_all
from forgekit.adapter.resolver import ProjectResolver
from forgekit.adapter.types import (
    Comment,
    Commit,
    Issue,
    IssueFilters,
    Label,
    Milestone,
    Project,
    PullRequest,
    Release,
    ReleaseAsset,
)
from forgekit.logger import get_logger

log = get_logger("gitlab")

ACCEPTED_SCHEMES = (AuthScheme.HTTP_TOKEN,)

API_MERGE_REQUEST_STATES = {
    None: "all",
    "open": "opened",
    "closed": "closed",
    "merged": "merged",
}

API_MILESTONE_STATES = {
    "open": "active",
    "closed": "closed",
}

# Statuses GitLab answers a refused merge with
MERGE_REJECTED = (401, 405, 406, 409)


class GitLabAdapter:
    """
    HostingAdapter implementation for GitLab (gitlab.com or self-hosted).

    Args:
        config: Adapter config (base_url, repo_domain_url, authentication,
                per_page, timeout_s). Loaded from the config file when None.
        owner: Project namespace
        repository: Project path
        client: Provider client; built lazily from config when None
    """

    capabilities = frozenset({
        Capability.ISSUES,
        Capability.COMMENTS,
        Capability.MILESTONES,
        Capability.PULL_REQUESTS,
    })

    def __init__(
        self,
        config: dict | None = None,
        owner: str = "",
        repository: str = "",
        client: GitLabRestClient | None = None,
    ):
        if config is None:
            config = get_adapter_config("gitlab")

        self._config = normalize_adapter_config(config)
        self._base_url = self._config.get("base_url", "https://gitlab.com/api/v4")
        self._repo_domain_url = self._config.get("repo_domain_url", "https://gitlab.com")
        self._per_page = int(self._config.get("per_page", 100))
        self._timeout_s = int(self._config.get("timeout_s", 30))

        self.owner = owner
        self.repository = repository

        self._client = client
        self._auth = AuthStrategy(self.name, ACCEPTED_SCHEMES)
        self._resolver: ProjectResolver | None = None

    @property
    def client(self) -> GitLabRestClient:
        """Get or create the GitLab client (lazy initialization)."""
        if self._client is None:
            self._client = GitLabRestClient(self._base_url, timeout_s=self._timeout_s)
        return self._client

    @property
    def name(self) -> str:
        return "gitlab"

    @property
    def auth_state(self) -> AuthState:
        return self._auth.state

    def _project_path(self, *parts: Any) -> str:
        path = f"projects/{self.get_current_project().id}"
        if parts:
            path += "/" + "/".join(str(part) for part in parts)
        return path

    def _web_url(self, *parts: Any) -> str:
        return "/".join(
            [self._repo_domain_url, self.owner, self.repository] + [str(part) for part in parts]
        )

    # --- Authentication ---

    def authenticate(self) -> bool:
        """GitLab only takes personal access tokens."""
        return self._auth.authenticate(self.client, Credentials.from_config(self._config))

    def is_authenticated(self) -> bool:
        try:
            result = self.client.get("projects", params={"owned": True, "per_page": 1})
        except ProviderError as e:
            if e.status in (401, 403):
                return False
            raise
        return isinstance(result, list)

    def get_token_generation_url(self) -> str | None:
        return f"{self._repo_domain_url}/profile/account"

    # --- Projects ---

    @property
    def resolver(self) -> ProjectResolver:
        if self._resolver is None:
            self._resolver = ProjectResolver(
                self.client,
                self.owner,
                self.repository,
                listing_path="projects",
                listing_params={"membership": True, "per_page": self._per_page},
                path_of=lambda record: record.get("path_with_namespace"),
                normalize=normalize_gitlab_project,
            )
        return self._resolver

    def get_current_project(self) -> Project:
        return self.resolver.resolve()

    def create_fork(self, owner: str) -> Project:
        raise unsupported(self, Capability.FORKING, "create_fork")

    # --- Issues ---

    def open_issue(self, subject: str, body: str, options: dict[str, Any] | None = None) -> Issue:
        options = options or {}
        assignee_id = None
        if options.get("assignee"):
            assignee_id = self._find_user_id(options["assignee"], "open_issue")
        payload = gitlab_issue_payload(options, assignee_id)
        payload.update({"title": subject, "description": body})
        record = self.client.post(self._project_path("issues"), json=payload)
        return normalize_gitlab_issue(record)

    def get_issue(self, number: int) -> Issue:
        with not_found_as("issue", number, "get_issue"):
            record = self.client.get(self._project_path("issues", number))
        return normalize_gitlab_issue(record)

    def get_issue_url(self, number: int) -> str:
        return self._web_url("issues", number)

    def get_issues(self, filters: dict[str, Any] | None = None) -> list[Issue]:
        """The listing is fetched whole and filtered here."""
        query = IssueFilters.from_dict(filters)
        wanted_state = issue_state_filter(query.state)

        records = fetch_all(self.client, self._project_path("issues"), {"per_page": self._per_page})
        issues = [normalize_gitlab_issue(record) for record in records]

        if wanted_state:
            issues = [i for i in issues if i.state is wanted_state]
        if query.creator:
            issues = [i for i in issues if i.user.login == query.creator]
        if query.assignee:
            issues = [i for i in issues if i.assignee and i.assignee.login == query.assignee]
        return issues

    def _find_user_id(self, login: str, operation: str) -> int:
        """The search is fuzzy; only an exact username match counts."""
        users = self.client.get("users", params={"search": login}) or []
        for user in users:
            if user.get("username") == login:
                return user["id"]
        raise NotFound("user", login, operation)

    def update_issue(self, number: int, fields: dict[str, Any]) -> Issue:
        assignee_id = None
        if fields.get("assignee"):
            assignee_id = self._find_user_id(fields["assignee"], "update_issue")
        payload = gitlab_issue_payload(fields, assignee_id)
        with not_found_as("issue", number, "update_issue"):
            record = self.client.put(self._project_path("issues", number), json=payload)
        return normalize_gitlab_issue(record)

    def close_issue(self, number: int) -> Issue:
        return self.update_issue(number, {"state": "closed"})

    # --- Comments ---

    def create_comment(self, number: int, body: str) -> Comment:
        with not_found_as("issue", number, "create_comment"):
            record = self.client.post(self._project_path("issues", number, "notes"), json={"body": body})
        return normalize_gitlab_note(record, self.get_issue_url(number))

    def get_comments(self, number: int) -> list[Comment]:
        parent_url = self.get_issue_url(number)
        with not_found_as("issue", number, "get_comments"):
            records = fetch_all(
                self.client,
                self._project_path("issues", number, "notes"),
                {"per_page": self._per_page},
            )
        return [normalize_gitlab_note(record, parent_url) for record in records]

    # --- Labels & milestones ---

    def get_labels(self) -> list[Label]:
        raise unsupported(self, Capability.LABELS, "get_labels")

    def get_milestones(self, filters: dict[str, Any] | None = None) -> list[Milestone]:
        params: dict[str, Any] = {"per_page": self._per_page}
        for key, value in (filters or {}).items():
            params[key] = API_MILESTONE_STATES.get(value, value) if key == "state" else value
        records = fetch_all(self.client, self._project_path("milestones"), params)
        return [normalize_gitlab_milestone(record) for record in records]

    # --- Merge requests ---

    def open_pull_request(
        self,
        base: str,
        head: str,
        subject: str,
        body: str,
        options: dict[str, Any] | None = None,
    ) -> PullRequest:
        """
        A head owned by another namespace is opened from that namespace's
        fork of the repository, targeting the current project.
        """
        head_owner, _, branch = head.rpartition(":")
        project = self.get_current_project()

        payload = dict(options or {})
        payload.update({
            "source_branch": branch,
            "target_branch": base,
            "title": subject,
            "description": body,
        })

        source_id = project.id
        if head_owner and head_owner != self.owner:
            source_id = self.resolver.find(head_owner, self.repository).id
            payload["target_project_id"] = project.id

        record = self.client.post(f"projects/{source_id}/merge_requests", json=payload)
        log.info("Opened merge request", provider=self.name, number=record.get("iid"),
                 base=base, head=head)
        return normalize_gitlab_merge_request(record)

    def get_pull_request(self, number: int) -> PullRequest:
        with not_found_as("merge request", number, "get_pull_request"):
            record = self.client.get(self._project_path("merge_requests", number))
        return normalize_gitlab_merge_request(record)

    def get_pull_request_url(self, number: int) -> str:
        return self._web_url("merge_requests", number)

    def get_pull_requests(self, state: str | None = None) -> list[PullRequest]:
        wanted = pull_request_state_filter(state)
        params = {
            "state": API_MERGE_REQUEST_STATES[wanted.value if wanted else None],
            "per_page": self._per_page,
        }
        records = fetch_all(self.client, self._project_path("merge_requests"), params)
        merge_requests = [normalize_gitlab_merge_request(record) for record in records]
        if wanted is None:
            return merge_requests
        return [mr for mr in merge_requests if mr.state is wanted]

    def get_pull_request_commits(self, number: int) -> list[Commit]:
        with not_found_as("merge request", number, "get_pull_request_commits"):
            records = fetch_all(
                self.client,
                self._project_path("merge_requests", number, "commits"),
                {"per_page": self._per_page},
            )
        return [normalize_gitlab_commit(record) for record in records]

    def merge_pull_request(self, number: int, message: str) -> PullRequest:
        try:
            record = self.client.put(
                self._project_path("merge_requests", number, "merge"),
                json={"merge_commit_message": message},
            )
        except ProviderError as e:
            if e.status in MERGE_REJECTED:
                log.warning("Merge rejected", provider=self.name, number=number, reason=e.message)
                raise NotMergeable(number, e.message) from e
            if e.status == 404:
                raise NotFound("merge request", str(number), "merge_pull_request") from e
            raise
        log.info("Merged merge request", provider=self.name, number=number)
        return normalize_gitlab_merge_request(record, merge_message=message)

    def close_pull_request(self, number: int) -> PullRequest:
        with not_found_as("merge request", number, "close_pull_request"):
            record = self.client.put(
                self._project_path("merge_requests", number),
                json={"state_event": "close"},
            )
        return normalize_gitlab_merge_request(record)

    # --- Releases ---

    def create_release(self, name: str, options: dict[str, Any] | None = None) -> Release:
        raise unsupported(self, Capability.RELEASES, "create_release")

    def get_releases(self) -> list[Release]:
        raise unsupported(self, Capability.RELEASES, "get_releases")

    def remove_release(self, release_id: int) -> None:
        raise unsupported(self, Capability.RELEASES, "remove_release")

    def create_release_asset(
        self,
        release_id: int,
        name: str,
        content_type: str,
        content: bytes,
    ) -> ReleaseAsset:
        raise unsupported(self, Capability.RELEASES, "create_release_asset")
