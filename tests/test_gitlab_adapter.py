"""Tests for the GitLab adapter."""

import pytest

from forgekit.adapter.errors import NotFound, NotMergeable, NotSupported, ProjectNotFound
from forgekit.adapter.http import ProviderError
from forgekit.adapter.providers.gitlab import GitLabAdapter
from forgekit.adapter.types import IssueState, PullRequestState


PROJECT = "projects/7"


def issue_record(iid, state="opened", author="jdoe", assignee=None, **extra):
    record = {
        "id": 800 + iid,
        "iid": iid,
        "title": f"Issue {iid}",
        "description": "",
        "state": state,
        "author": {"id": 3, "username": author},
        "assignee": {"id": 4, "username": assignee} if assignee else None,
        "labels": [],
        "web_url": f"https://gitlab.example.com/acme/widget/issues/{iid}",
    }
    record.update(extra)
    return record


def mr_record(iid, state="opened", **extra):
    record = {
        "id": 900 + iid,
        "iid": iid,
        "title": f"MR {iid}",
        "description": "",
        "state": state,
        "author": {"id": 3, "username": "jdoe"},
        "source_branch": f"topic-{iid}",
        "target_branch": "main",
        "web_url": f"https://gitlab.example.com/acme/widget/merge_requests/{iid}",
    }
    record.update(extra)
    return record


@pytest.fixture
def adapter(fake_client, gitlab_config):
    return GitLabAdapter(gitlab_config, "acme", "widget", client=fake_client)


@pytest.fixture
def resolved(fake_client, project_record):
    """Serve a project listing in which acme/widget has id 7."""
    fake_client.add_pages("projects", [
        [project_record(5, "acme/other"), project_record(7, "acme/widget")],
        [project_record(8, "forker/widget",
                        forked_from_project={"path_with_namespace": "acme/widget"})],
    ])
    return fake_client


class TestAccount:
    """Tests for authentication helpers."""

    def test_token_generation_url(self, adapter):
        assert adapter.get_token_generation_url() == "https://gitlab.example.com/profile/account"

    def test_is_authenticated(self, adapter, fake_client):
        fake_client.add("GET", "projects", [])
        assert adapter.is_authenticated() is True
        assert fake_client.calls_to("GET", "projects") == [{"params": {"owned": True, "per_page": 1}}]

    def test_is_not_authenticated(self, adapter, fake_client):
        fake_client.add("GET", "projects", ProviderError(401, "401 Unauthorized"))
        assert adapter.is_authenticated() is False


class TestProjects:
    """Tests for project resolution."""

    def test_current_project(self, adapter, resolved):
        project = adapter.get_current_project()
        assert project.id == 7
        assert project.path == "acme/widget"
        assert resolved.calls[0][2] == {"params": {"membership": True, "per_page": 100}}
        assert len(resolved.calls) == 1

    def test_resolved_once_per_adapter(self, adapter, resolved):
        resolved.add("GET", f"{PROJECT}/issues/1", issue_record(1))
        resolved.add("GET", f"{PROJECT}/issues/2", issue_record(2))

        adapter.get_issue(1)
        adapter.get_issue(2)

        listing_calls = [path for _, path, _ in resolved.calls if "projects?" in path or path == "projects"]
        assert listing_calls == ["projects"]

    def test_unknown_project(self, fake_client, gitlab_config, project_record):
        fake_client.add_pages("projects", [[project_record(5, "acme/other")]])
        adapter = GitLabAdapter(gitlab_config, "acme", "missing", client=fake_client)
        with pytest.raises(ProjectNotFound):
            adapter.get_issue(1)


class TestCapabilityGaps:
    """Operations GitLab does not back fail before any call."""

    def test_get_labels(self, adapter, fake_client):
        with pytest.raises(NotSupported) as exc_info:
            adapter.get_labels()
        assert str(exc_info.value) == "Labels are not supported by gitlab"
        assert exc_info.value.operation == "get_labels"
        assert fake_client.calls == []

    def test_create_fork(self, adapter, fake_client):
        with pytest.raises(NotSupported) as exc_info:
            adapter.create_fork("someone")
        assert exc_info.value.feature == "forks"
        assert fake_client.calls == []

    @pytest.mark.parametrize("call", [
        lambda a: a.create_release("v1"),
        lambda a: a.get_releases(),
        lambda a: a.remove_release(1),
        lambda a: a.create_release_asset(1, "a.zip", "application/zip", b""),
    ])
    def test_releases(self, adapter, fake_client, call):
        with pytest.raises(NotSupported) as exc_info:
            call(adapter)
        assert exc_info.value.feature == "releases"
        assert fake_client.calls == []


class TestIssues:
    """Tests for issue operations."""

    def test_open_issue(self, adapter, resolved):
        resolved.add("POST", f"{PROJECT}/issues", issue_record(14, title="Crash"))
        issue = adapter.open_issue("Crash", "Steps")

        assert resolved.calls_to("POST", f"{PROJECT}/issues") == [
            {"json": {"title": "Crash", "description": "Steps"}}
        ]
        assert issue.number == 14
        assert issue.display_id == "14 (814)"

    def test_issue_url(self, adapter):
        assert adapter.get_issue_url(14) == "https://gitlab.example.com/acme/widget/issues/14"

    def test_get_issues_filters_client_side(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/issues", [
            [issue_record(1, author="amy", assignee="bob"),
             issue_record(2, state="closed", author="amy", assignee="bob")],
            [issue_record(3, author="jdoe", assignee="bob"),
             issue_record(4, author="amy")],
        ])

        issues = adapter.get_issues({"state": "open", "creator": "amy", "assignee": "bob"})

        assert [issue.number for issue in issues] == [1]
        assert issues[0].state is IssueState.OPEN

    def test_get_issues_all(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/issues", [[issue_record(1), issue_record(2, state="closed")]])
        assert len(adapter.get_issues({"state": "all"})) == 2

    def test_update_issue_unknown_assignee(self, adapter, fake_client):
        fake_client.add("GET", "users", [])

        with pytest.raises(NotFound) as exc_info:
            adapter.update_issue(14, {"assignee": "nobody"})

        assert exc_info.value.key == "nobody"
        assert "nobody" in str(exc_info.value)
        assert [method for method, _, _ in fake_client.calls] == ["GET"]

    def test_open_issue_with_assignee(self, adapter, resolved):
        resolved.add("GET", "users", [{"id": 42, "username": "bob"}])
        resolved.add("POST", f"{PROJECT}/issues", issue_record(15, assignee="bob"))

        issue = adapter.open_issue("t", "b", {"assignee": "bob"})

        assert resolved.calls_to("POST", f"{PROJECT}/issues") == [
            {"json": {"assignee_ids": [42], "title": "t", "description": "b"}}
        ]
        assert issue.assignee.login == "bob"

    def test_open_issue_unknown_assignee(self, adapter, fake_client):
        fake_client.add("GET", "users", [])

        with pytest.raises(NotFound) as exc_info:
            adapter.open_issue("t", "b", {"assignee": "nobody"})

        assert exc_info.value.operation == "open_issue"
        assert [method for method, _, _ in fake_client.calls] == ["GET"]

    def test_assignee_without_exact_match_is_not_found(self, adapter, fake_client):
        """A fuzzy search hit for another username does not count."""
        fake_client.add("GET", "users", [{"id": 7, "username": "bobby"}])

        with pytest.raises(NotFound) as exc_info:
            adapter.update_issue(14, {"assignee": "bob"})

        assert exc_info.value.key == "bob"
        assert fake_client.calls_to("PUT", f"{PROJECT}/issues/14") == []

    def test_missing_issue(self, adapter, resolved):
        resolved.add("GET", f"{PROJECT}/issues/999", ProviderError(404, "404 Not found"))

        with pytest.raises(NotFound) as exc_info:
            adapter.get_issue(999)

        assert exc_info.value.kind == "issue"
        assert exc_info.value.key == "999"

    def test_comment_on_missing_issue(self, adapter, resolved):
        resolved.add("POST", f"{PROJECT}/issues/999/notes", ProviderError(404, "404 Not found"))
        with pytest.raises(NotFound) as exc_info:
            adapter.create_comment(999, "hi")
        assert exc_info.value.operation == "create_comment"

    def test_update_issue_assignee_prefers_exact_match(self, adapter, resolved):
        resolved.add("GET", "users", [{"id": 40, "username": "amy2"}, {"id": 4, "username": "amy"}])
        resolved.add("PUT", f"{PROJECT}/issues/14", issue_record(14, assignee="amy"))

        issue = adapter.update_issue(14, {"assignee": "amy", "body": "new"})

        assert resolved.calls_to("GET", "users") == [{"params": {"search": "amy"}}]
        assert resolved.calls_to("PUT", f"{PROJECT}/issues/14") == [
            {"json": {"assignee_ids": [4], "description": "new"}}
        ]
        assert issue.assignee.login == "amy"

    def test_close_issue(self, adapter, resolved):
        resolved.add("PUT", f"{PROJECT}/issues/14", issue_record(14, state="closed"))
        issue = adapter.close_issue(14)
        assert resolved.calls_to("PUT", f"{PROJECT}/issues/14") == [{"json": {"state_event": "close"}}]
        assert issue.state is IssueState.CLOSED


class TestComments:
    """Tests for notes."""

    def test_create_comment(self, adapter, resolved):
        resolved.add("POST", f"{PROJECT}/issues/14/notes",
                     {"id": 301, "body": "LGTM", "author": {"username": "amy"}})
        comment = adapter.create_comment(14, "LGTM")
        assert comment.url == "https://gitlab.example.com/acme/widget/issues/14#note_301"

    def test_get_comments(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/issues/14/notes", [[{"id": 1}], [{"id": 2}]])
        comments = adapter.get_comments(14)
        assert [c.url for c in comments] == [
            "https://gitlab.example.com/acme/widget/issues/14#note_1",
            "https://gitlab.example.com/acme/widget/issues/14#note_2",
        ]


class TestMilestones:
    """Tests for milestones."""

    def test_open_maps_to_active(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/milestones", [[{"id": 1, "iid": 1, "title": "v1",
                                                       "state": "active"}]])
        milestones = adapter.get_milestones({"state": "open"})
        assert resolved.calls_to("GET", f"{PROJECT}/milestones") == [
            {"params": {"per_page": 100, "state": "active"}}
        ]
        assert milestones[0].state == "open"


class TestMergeRequests:
    """Tests for merge requests."""

    def test_open_in_same_project(self, adapter, resolved):
        resolved.add("POST", f"{PROJECT}/merge_requests", mr_record(3))
        mr = adapter.open_pull_request("main", "topic-3", "MR 3", "body")

        assert resolved.calls_to("POST", f"{PROJECT}/merge_requests") == [{"json": {
            "source_branch": "topic-3",
            "target_branch": "main",
            "title": "MR 3",
            "description": "body",
        }}]
        assert mr.number == 3
        assert mr.head.branch == "topic-3"

    def test_open_from_fork(self, adapter, resolved):
        """A head owned by another namespace is opened from that fork."""
        resolved.add("POST", "projects/8/merge_requests", mr_record(4))

        adapter.open_pull_request("main", "forker:topic-4", "MR 4", "body")

        assert resolved.calls_to("POST", "projects/8/merge_requests") == [{"json": {
            "source_branch": "topic-4",
            "target_branch": "main",
            "title": "MR 4",
            "description": "body",
            "target_project_id": 7,
        }}]

    def test_open_from_unknown_fork(self, adapter, fake_client, project_record):
        fake_client.add_pages("projects", [[project_record(7, "acme/widget")]])
        with pytest.raises(ProjectNotFound) as exc_info:
            adapter.open_pull_request("main", "stranger:topic", "t", "b")
        assert exc_info.value.owner == "stranger"

    def test_closed_excludes_merged(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/merge_requests", [[
            mr_record(1, "closed"),
            mr_record(2, "merged"),
        ]])

        merge_requests = adapter.get_pull_requests("closed")

        assert [mr.number for mr in merge_requests] == [1]
        assert merge_requests[0].state is PullRequestState.CLOSED
        assert resolved.calls_to("GET", f"{PROJECT}/merge_requests") == [
            {"params": {"state": "closed", "per_page": 100}}
        ]

    def test_all_states(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/merge_requests", [[
            mr_record(1, "opened"), mr_record(2, "merged"), mr_record(3, "closed"),
        ]])
        states = [mr.state for mr in adapter.get_pull_requests()]
        assert states == [PullRequestState.OPEN, PullRequestState.MERGED, PullRequestState.CLOSED]

    def test_url(self, adapter):
        assert adapter.get_pull_request_url(3) == \
            "https://gitlab.example.com/acme/widget/merge_requests/3"

    def test_commits(self, adapter, resolved):
        resolved.add_pages(f"{PROJECT}/merge_requests/3/commits", [[
            {"id": "abc", "message": "Fix", "author_name": "Jo"},
        ]])
        assert adapter.get_pull_request_commits(3)[0].sha == "abc"

    def test_merge(self, adapter, resolved):
        resolved.add("PUT", f"{PROJECT}/merge_requests/3/merge", mr_record(3, "merged"))

        mr = adapter.merge_pull_request(3, "Ship it")

        assert resolved.calls_to("PUT", f"{PROJECT}/merge_requests/3/merge") == [
            {"json": {"merge_commit_message": "Ship it"}}
        ]
        assert mr.state is PullRequestState.MERGED
        assert mr.merge_message == "Ship it"

    @pytest.mark.parametrize("status", [405, 406, 409])
    def test_rejected_merge(self, adapter, resolved, status):
        resolved.add("PUT", f"{PROJECT}/merge_requests/3/merge",
                     ProviderError(status, "Branch cannot be merged"))
        with pytest.raises(NotMergeable) as exc_info:
            adapter.merge_pull_request(3, "Ship it")
        assert exc_info.value.reason == "Branch cannot be merged"

    def test_missing_merge_request(self, adapter, resolved):
        resolved.add("GET", f"{PROJECT}/merge_requests/404", ProviderError(404, "404 Not found"))
        with pytest.raises(NotFound) as exc_info:
            adapter.get_pull_request(404)
        assert exc_info.value.kind == "merge request"
        assert exc_info.value.key == "404"

    def test_merge_missing_merge_request(self, adapter, resolved):
        resolved.add("PUT", f"{PROJECT}/merge_requests/404/merge", ProviderError(404, "404 Not found"))
        with pytest.raises(NotFound):
            adapter.merge_pull_request(404, "Ship it")

    def test_merge_server_error_propagates(self, adapter, resolved):
        resolved.add("PUT", f"{PROJECT}/merge_requests/3/merge", ProviderError(500, "boom"))
        with pytest.raises(ProviderError):
            adapter.merge_pull_request(3, "Ship it")

    def test_close(self, adapter, resolved):
        resolved.add("PUT", f"{PROJECT}/merge_requests/3", mr_record(3, "closed"))
        mr = adapter.close_pull_request(3)
        assert resolved.calls_to("PUT", f"{PROJECT}/merge_requests/3") == [
            {"json": {"state_event": "close"}}
        ]
        assert mr.state is PullRequestState.CLOSED
