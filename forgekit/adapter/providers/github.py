"""
GitHub hosting adapter.

Implements the HostingAdapter protocol on top of the GitHub REST v3 API.
GitHub backs every capability; merged pull requests are reported as
"closed" by the API and are told apart through ``merged``/``merged_at`` or,
failing that, the per-request merge endpoint.
"""

from typing import Any

from forgekit.adapter.auth import AuthScheme, AuthState, AuthStrategy, Credentials
from forgekit.adapter.capabilities import Capability, require
from forgekit.adapter.config import get_adapter_config, normalize_adapter_config
from forgekit.adapter.errors import NotFound, NotMergeable
from forgekit.adapter.http import GitHubRestClient, ProviderError, not_found_as
from forgekit.adapter.normalize import (
    github_issue_payload,
    github_pull_request_is_merged,
    issue_state_filter,
    normalize_github_comment,
    normalize_github_commit,
    normalize_github_issue,
    normalize_github_label,
    normalize_github_milestone,
    normalize_github_project,
    normalize_github_pull_request,
    normalize_github_release,
    normalize_github_release_asset,
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

log = get_logger("github")

ACCEPTED_SCHEMES = (AuthScheme.HTTP_PASSWORD, AuthScheme.HTTP_TOKEN)

# Listing state to request for each canonical filter; merged PRs are "closed" on GitHub
API_PULL_STATES = {
    None: "all",
    "open": "open",
    "closed": "closed",
    "merged": "closed",
}

# Statuses GitHub answers a refused merge with
MERGE_REJECTED = (405, 409)


class GitHubAdapter:
    """
    HostingAdapter implementation for GitHub and GitHub Enterprise.

    Args:
        config: Adapter config (base_url, repo_domain_url, authentication,
                per_page, timeout_s). Loaded from the config file when None.
        owner: Repository owner login
        repository: Repository name
        client: Provider client; built lazily from config when None
    """

    capabilities = frozenset(Capability)

    def __init__(
        self,
        config: dict | None = None,
        owner: str = "",
        repository: str = "",
        client: GitHubRestClient | None = None,
    ):
        if config is None:
            config = get_adapter_config("github")

        self._config = normalize_adapter_config(config)
        self._base_url = self._config.get("base_url", "https://api.github.com")
        self._repo_domain_url = self._config.get("repo_domain_url", "https://github.com")
        self._per_page = int(self._config.get("per_page", 100))
        self._timeout_s = int(self._config.get("timeout_s", 30))

        self.owner = owner
        self.repository = repository

        self._client = client
        self._auth = AuthStrategy(self.name, ACCEPTED_SCHEMES)
        self._resolver: ProjectResolver | None = None

    @property
    def client(self) -> GitHubRestClient:
        """Get or create the GitHub client (lazy initialization)."""
        if self._client is None:
            self._client = GitHubRestClient(self._base_url, timeout_s=self._timeout_s)
        return self._client

    @property
    def name(self) -> str:
        return "github"

    @property
    def auth_state(self) -> AuthState:
        return self._auth.state

    def _repo_path(self, *parts: Any) -> str:
        path = f"repos/{self.owner}/{self.repository}"
        if parts:
            path += "/" + "/".join(str(part) for part in parts)
        return path

    # --- Authentication ---

    def authenticate(self) -> bool:
        return self._auth.authenticate(self.client, Credentials.from_config(self._config))

    def is_authenticated(self) -> bool:
        """Password logins may list authorizations; tokens may read /user."""
        path = "authorizations" if self._auth.scheme is AuthScheme.HTTP_PASSWORD else "user"
        try:
            result = self.client.get(path)
        except ProviderError as e:
            if e.status in (401, 403):
                return False
            raise
        return isinstance(result, (list, dict))

    def get_token_generation_url(self) -> str | None:
        return None

    # --- Projects ---

    @property
    def resolver(self) -> ProjectResolver:
        if self._resolver is None:
            self._resolver = ProjectResolver(
                self.client,
                self.owner,
                self.repository,
                listing_path="user/repos",
                listing_params={"per_page": self._per_page},
                path_of=lambda record: record.get("full_name"),
                normalize=normalize_github_project,
            )
        return self._resolver

    def get_current_project(self) -> Project:
        return self.resolver.resolve()

    def _current_login(self) -> str:
        """Login of the authenticated account; token auth asks /user."""
        credentials = Credentials.from_config(self._config)
        if credentials.scheme is AuthScheme.HTTP_PASSWORD and credentials.username:
            return credentials.username
        return (self.client.get("user") or {}).get("login", "")

    def create_fork(self, owner: str) -> Project:
        """Fork into ``owner``, sent as an organization unless it is the caller's own login."""
        require(self, Capability.FORKING, "create_fork")
        payload = {"organization": owner} if owner and owner != self._current_login() else {}
        record = self.client.post(self._repo_path("forks"), json=payload)
        log.info("Forked repository", provider=self.name, owner=owner,
                 repository=self.repository)
        return normalize_github_project(record)

    # --- Issues ---

    def open_issue(self, subject: str, body: str, options: dict[str, Any] | None = None) -> Issue:
        if (options or {}).get("assignee"):
            self._find_user(options["assignee"], "open_issue")
        payload = github_issue_payload(options or {})
        payload.update({"title": subject, "body": body})
        record = self.client.post(self._repo_path("issues"), json=payload)
        return normalize_github_issue(record)

    def get_issue(self, number: int) -> Issue:
        with not_found_as("issue", number, "get_issue"):
            record = self.client.get(self._repo_path("issues", number))
        return normalize_github_issue(record)

    def get_issue_url(self, number: int) -> str:
        return f"{self._repo_domain_url}/{self.owner}/{self.repository}/issues/{number}"

    def get_issues(self, filters: dict[str, Any] | None = None) -> list[Issue]:
        """Filters go to the API; GitHub filters server-side."""
        query = IssueFilters.from_dict(filters)
        wanted_state = issue_state_filter(query.state)
        params: dict[str, Any] = {
            "per_page": self._per_page,
            "state": wanted_state.value if wanted_state else "all",
        }
        if query.creator:
            params["creator"] = query.creator
        if query.assignee:
            params["assignee"] = query.assignee
        records = fetch_all(self.client, self._repo_path("issues"), params)
        # The issues listing also carries pull requests
        return [normalize_github_issue(record) for record in records if "pull_request" not in record]

    def _find_user(self, login: str, operation: str) -> dict[str, Any]:
        with not_found_as("user", login, operation):
            return self.client.get(f"users/{login}")

    def update_issue(self, number: int, fields: dict[str, Any]) -> Issue:
        if fields.get("assignee"):
            self._find_user(fields["assignee"], "update_issue")
        with not_found_as("issue", number, "update_issue"):
            record = self.client.patch(self._repo_path("issues", number), json=github_issue_payload(fields))
        return normalize_github_issue(record)

    def close_issue(self, number: int) -> Issue:
        return self.update_issue(number, {"state": "closed"})

    # --- Comments ---

    def create_comment(self, number: int, body: str) -> Comment:
        with not_found_as("issue", number, "create_comment"):
            record = self.client.post(self._repo_path("issues", number, "comments"), json={"body": body})
        return normalize_github_comment(record, self.get_issue_url(number))

    def get_comments(self, number: int) -> list[Comment]:
        parent_url = self.get_issue_url(number)
        with not_found_as("issue", number, "get_comments"):
            records = fetch_all(
                self.client,
                self._repo_path("issues", number, "comments"),
                {"per_page": self._per_page},
            )
        return [normalize_github_comment(record, parent_url) for record in records]

    # --- Labels & milestones ---

    def get_labels(self) -> list[Label]:
        require(self, Capability.LABELS, "get_labels")
        records = fetch_all(self.client, self._repo_path("labels"), {"per_page": self._per_page})
        return [normalize_github_label(record) for record in records]

    def get_milestones(self, filters: dict[str, Any] | None = None) -> list[Milestone]:
        params = {"per_page": self._per_page, **(filters or {})}
        records = fetch_all(self.client, self._repo_path("milestones"), params)
        return [normalize_github_milestone(record) for record in records]

    # --- Pull requests ---

    def open_pull_request(
        self,
        base: str,
        head: str,
        subject: str,
        body: str,
        options: dict[str, Any] | None = None,
    ) -> PullRequest:
        payload = dict(options or {})
        payload.update({"base": base, "head": head, "title": subject, "body": body})
        record = self.client.post(self._repo_path("pulls"), json=payload)
        log.info("Opened pull request", provider=self.name, number=record.get("number"),
                 base=base, head=head)
        return normalize_github_pull_request(record)

    def get_pull_request(self, number: int) -> PullRequest:
        with not_found_as("pull request", number, "get_pull_request"):
            record = self.client.get(self._repo_path("pulls", number))
        return normalize_github_pull_request(record)

    def get_pull_request_url(self, number: int) -> str:
        return f"{self._repo_domain_url}/{self.owner}/{self.repository}/pull/{number}"

    def _is_merged(self, number: int) -> bool:
        """Ask the merge endpoint: 204 when merged, 404 otherwise."""
        try:
            self.client.get(self._repo_path("pulls", number, "merge"))
        except ProviderError as e:
            if e.status == 404:
                return False
            raise
        return True

    def get_pull_requests(self, state: str | None = None) -> list[PullRequest]:
        wanted = pull_request_state_filter(state)
        params = {
            "state": API_PULL_STATES[wanted.value if wanted else None],
            "per_page": self._per_page,
        }
        pull_requests = []
        for record in fetch_all(self.client, self._repo_path("pulls"), params):
            merged = github_pull_request_is_merged(record)
            if merged is None and record.get("state") == "closed":
                merged = self._is_merged(record["number"])
            pull_request = normalize_github_pull_request(record, merged=merged)
            if wanted is None or pull_request.state is wanted:
                pull_requests.append(pull_request)
        return pull_requests

    def get_pull_request_commits(self, number: int) -> list[Commit]:
        with not_found_as("pull request", number, "get_pull_request_commits"):
            records = fetch_all(
                self.client,
                self._repo_path("pulls", number, "commits"),
                {"per_page": self._per_page},
            )
        return [normalize_github_commit(record) for record in records]

    def merge_pull_request(self, number: int, message: str) -> PullRequest:
        try:
            result = self.client.put(
                self._repo_path("pulls", number, "merge"),
                json={"commit_message": message},
            ) or {}
        except ProviderError as e:
            if e.status in MERGE_REJECTED:
                log.warning("Merge rejected", provider=self.name, number=number, reason=e.message)
                raise NotMergeable(number, e.message) from e
            if e.status == 404:
                raise NotFound("pull request", str(number), "merge_pull_request") from e
            raise

        record = self.client.get(self._repo_path("pulls", number))
        log.info("Merged pull request", provider=self.name, number=number, sha=result.get("sha"))
        return normalize_github_pull_request(
            record,
            merged=bool(result.get("merged", True)),
            merge_message=result.get("message"),
        )

    def close_pull_request(self, number: int) -> PullRequest:
        with not_found_as("pull request", number, "close_pull_request"):
            record = self.client.patch(self._repo_path("pulls", number), json={"state": "closed"})
        return normalize_github_pull_request(record)

    # --- Releases ---

    def create_release(self, name: str, options: dict[str, Any] | None = None) -> Release:
        require(self, Capability.RELEASES, "create_release")
        payload = dict(options or {})
        payload["tag_name"] = name
        record = self.client.post(self._repo_path("releases"), json=payload)
        log.info("Created release", provider=self.name, tag_name=name, release_id=record.get("id"))
        return normalize_github_release(record)

    def get_releases(self) -> list[Release]:
        require(self, Capability.RELEASES, "get_releases")
        records = fetch_all(self.client, self._repo_path("releases"), {"per_page": self._per_page})
        return [normalize_github_release(record) for record in records]

    def remove_release(self, release_id: int) -> None:
        require(self, Capability.RELEASES, "remove_release")
        with not_found_as("release", release_id, "remove_release"):
            self.client.delete(self._repo_path("releases", release_id))
        log.info("Removed release", provider=self.name, release_id=release_id)

    def create_release_asset(
        self,
        release_id: int,
        name: str,
        content_type: str,
        content: bytes,
    ) -> ReleaseAsset:
        """Upload to the release's upload_url, an RFC 6570 template."""
        require(self, Capability.RELEASES, "create_release_asset")
        with not_found_as("release", release_id, "create_release_asset"):
            release = self.client.get(self._repo_path("releases", release_id))
        upload_url = (release.get("upload_url") or "").split("{", 1)[0]
        if not upload_url:
            raise NotFound("release upload url", str(release_id), "create_release_asset")
        record = self.client.post(
            upload_url,
            params={"name": name},
            data=content,
            headers={"Content-Type": content_type},
        )
        return normalize_github_release_asset(record)
