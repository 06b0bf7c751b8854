"""
Entity normalizers.

Pure functions mapping provider records (decoded JSON) onto the canonical
types, plus the reverse mappings used to turn canonical update fields into
provider payloads.

Every normalizer fills the canonical shape through ``merge_defaults`` against
an explicit template, so an entity never lacks a canonical field and no
provider-only key survives normalization.
"""

import copy
from typing import Any

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
    Release,
    ReleaseAsset,
    User,
)


USER_DEFAULTS: dict[str, Any] = {"id": None, "login": "", "url": None}

LABEL_DEFAULTS: dict[str, Any] = {"name": "", "color": None}

REF_DEFAULTS: dict[str, Any] = {"branch": "", "user": None}

ISSUE_DEFAULTS: dict[str, Any] = {
    "id": None,
    "number": None,
    "display_id": "",
    "title": "",
    "body": "",
    "user": USER_DEFAULTS,
    "assignee": None,
    "state": "open",
    "labels": [],
    "url": None,
    "created_at": None,
    "updated_at": None,
}

PULL_REQUEST_DEFAULTS: dict[str, Any] = {
    "id": None,
    "number": None,
    "display_id": "",
    "title": "",
    "body": "",
    "user": USER_DEFAULTS,
    "state": "open",
    "head": REF_DEFAULTS,
    "base": REF_DEFAULTS,
    "merged": False,
    "merge_message": None,
    "url": None,
    "created_at": None,
    "updated_at": None,
}

PROJECT_DEFAULTS: dict[str, Any] = {
    "id": None,
    "name": "",
    "owner": None,
    "url": None,
    "fetch_url": None,
    "push_url": None,
    "is_private": True,
    "is_fork": False,
    "fork_origin": None,
}

COMMENT_DEFAULTS: dict[str, Any] = {
    "id": None,
    "body": "",
    "user": USER_DEFAULTS,
    "url": None,
    "created_at": None,
}

MILESTONE_DEFAULTS: dict[str, Any] = {
    "id": None,
    "number": None,
    "title": "",
    "description": "",
    "state": "open",
    "due_on": None,
}

COMMIT_DEFAULTS: dict[str, Any] = {"sha": "", "message": "", "author": "", "url": None}

RELEASE_DEFAULTS: dict[str, Any] = {
    "id": None,
    "tag_name": "",
    "name": "",
    "body": "",
    "draft": False,
    "prerelease": False,
    "url": None,
    "upload_url": None,
    "created_at": None,
}

RELEASE_ASSET_DEFAULTS: dict[str, Any] = {
    "id": None,
    "name": "",
    "content_type": "",
    "size": 0,
    "url": None,
}

ISSUE_STATES = {
    "open": "open",
    "opened": "open",
    "reopened": "open",
    "closed": "closed",
}

PULL_REQUEST_STATES = {
    "open": "open",
    "opened": "open",
    "reopened": "open",
    "locked": "open",
    "closed": "closed",
    "merged": "merged",
}

MILESTONE_STATES = {
    "open": "open",
    "active": "open",
    "closed": "closed",
}


def pull_request_state_filter(state: Any) -> PullRequestState | None:
    """
    Canonical state a listing is filtered on; None or "all" means no filter.

    Raises:
        ValueError: For a state outside the canonical enumeration
    """
    if state is None or state == "all":
        return None
    return PullRequestState(getattr(state, "value", state))


def issue_state_filter(state: Any) -> IssueState | None:
    if state is None or state == "all":
        return None
    return IssueState(getattr(state, "value", state))


def merge_defaults(template: dict[str, Any], values: dict[str, Any] | None) -> dict[str, Any]:
    """
    Fill a canonical record from its default template.

    Walks the template key by key: a missing or None value takes a copy of
    the template default, nested dicts are merged recursively, and keys not
    in the template are dropped. Applying it twice gives the same result.
    """
    values = values or {}
    merged: dict[str, Any] = {}
    for key, default in template.items():
        value = values.get(key)
        if value is None:
            merged[key] = copy.deepcopy(default)
        elif isinstance(default, dict) and isinstance(value, dict):
            merged[key] = merge_defaults(default, value)
        else:
            merged[key] = value
    return merged


def compose_display_id(number: Any, primary: Any) -> str:
    """Return "{number} ({primary})" when both exist and differ."""
    if number is not None and primary is not None and number != primary:
        return f"{number} ({primary})"
    if number is not None:
        return str(number)
    if primary is not None:
        return str(primary)
    return ""


def _user_dict(record: dict[str, Any] | None, login_key: str, url_key: str) -> dict[str, Any] | None:
    if not record:
        return None
    return merge_defaults(USER_DEFAULTS, {
        "id": record.get("id"),
        "login": record.get(login_key),
        "url": record.get(url_key),
    })


# --- GitHub ---

def github_user(record: dict[str, Any] | None) -> dict[str, Any] | None:
    return _user_dict(record, "login", "html_url")


def normalize_github_user(record: dict[str, Any]) -> User:
    return User.from_dict(github_user(record) or USER_DEFAULTS)


def normalize_github_label(record: dict[str, Any]) -> Label:
    return Label.from_dict(merge_defaults(LABEL_DEFAULTS, {
        "name": record.get("name"),
        "color": record.get("color"),
    }))


def normalize_github_issue(record: dict[str, Any]) -> Issue:
    return Issue.from_dict(merge_defaults(ISSUE_DEFAULTS, {
        "id": record.get("id"),
        "number": record.get("number"),
        "display_id": compose_display_id(record.get("number"), record.get("id")),
        "title": record.get("title"),
        "body": record.get("body"),
        "user": github_user(record.get("user")),
        "assignee": github_user(record.get("assignee")),
        "state": ISSUE_STATES.get(record.get("state", "")),
        "labels": [{"name": label.get("name"), "color": label.get("color")}
                   for label in record.get("labels") or []],
        "url": record.get("html_url"),
        "created_at": record.get("created_at"),
        "updated_at": record.get("updated_at"),
    }))


def github_pull_request_is_merged(record: dict[str, Any]) -> bool | None:
    """True/False when the record says so, None when it cannot tell."""
    if "merged" in record and record["merged"] is not None:
        return bool(record["merged"])
    if "merged_at" in record:
        return record["merged_at"] is not None
    return None


def normalize_github_pull_request(
    record: dict[str, Any],
    merged: bool | None = None,
    merge_message: str | None = None,
) -> PullRequest:
    """
    Map a GitHub pull request.

    GitHub reports merged pull requests as "closed"; ``merged`` overrides
    what the record itself says when the caller asked the finer-grained
    merge endpoint.
    """
    if merged is None:
        merged = bool(github_pull_request_is_merged(record))
    state = PULL_REQUEST_STATES.get(record.get("state", ""))
    if state == "closed" and merged:
        state = "merged"

    head = record.get("head") or {}
    base = record.get("base") or {}
    return PullRequest.from_dict(merge_defaults(PULL_REQUEST_DEFAULTS, {
        "id": record.get("id"),
        "number": record.get("number"),
        "display_id": compose_display_id(record.get("number"), record.get("id")),
        "title": record.get("title"),
        "body": record.get("body"),
        "user": github_user(record.get("user")),
        "state": state,
        "head": {"branch": head.get("ref"), "user": github_user(head.get("user"))},
        "base": {"branch": base.get("ref"), "user": github_user(base.get("user"))},
        "merged": merged,
        "merge_message": merge_message,
        "url": record.get("html_url"),
        "created_at": record.get("created_at"),
        "updated_at": record.get("updated_at"),
    }))


def normalize_github_project(record: dict[str, Any]) -> Project:
    parent = record.get("parent") or record.get("source") or {}
    return Project.from_dict(merge_defaults(PROJECT_DEFAULTS, {
        "id": record.get("id"),
        "name": record.get("name"),
        "owner": (record.get("owner") or {}).get("login"),
        "url": record.get("html_url"),
        "fetch_url": record.get("clone_url"),
        "push_url": record.get("ssh_url"),
        "is_private": record.get("private"),
        "is_fork": record.get("fork"),
        "fork_origin": parent.get("full_name"),
    }))


def normalize_github_comment(record: dict[str, Any], parent_url: str | None) -> Comment:
    comment_id = record.get("id")
    return Comment.from_dict(merge_defaults(COMMENT_DEFAULTS, {
        "id": comment_id,
        "body": record.get("body"),
        "user": github_user(record.get("user")),
        "url": f"{parent_url}#issuecomment-{comment_id}" if parent_url else record.get("html_url"),
        "created_at": record.get("created_at"),
    }))


def normalize_github_milestone(record: dict[str, Any]) -> Milestone:
    return Milestone.from_dict(merge_defaults(MILESTONE_DEFAULTS, {
        "id": record.get("id"),
        "number": record.get("number"),
        "title": record.get("title"),
        "description": record.get("description"),
        "state": MILESTONE_STATES.get(record.get("state", "")),
        "due_on": record.get("due_on"),
    }))


def normalize_github_commit(record: dict[str, Any]) -> Commit:
    commit = record.get("commit") or {}
    return Commit.from_dict(merge_defaults(COMMIT_DEFAULTS, {
        "sha": record.get("sha"),
        "message": commit.get("message"),
        "author": (commit.get("author") or {}).get("name"),
        "url": record.get("html_url"),
    }))


def normalize_github_release(record: dict[str, Any]) -> Release:
    return Release.from_dict(merge_defaults(RELEASE_DEFAULTS, {
        "id": record.get("id"),
        "tag_name": record.get("tag_name"),
        "name": record.get("name"),
        "body": record.get("body"),
        "draft": record.get("draft"),
        "prerelease": record.get("prerelease"),
        "url": record.get("html_url"),
        "upload_url": record.get("upload_url"),
        "created_at": record.get("created_at"),
    }))


def normalize_github_release_asset(record: dict[str, Any]) -> ReleaseAsset:
    return ReleaseAsset.from_dict(merge_defaults(RELEASE_ASSET_DEFAULTS, {
        "id": record.get("id"),
        "name": record.get("name"),
        "content_type": record.get("content_type"),
        "size": record.get("size"),
        "url": record.get("browser_download_url"),
    }))


def github_issue_payload(fields: dict[str, Any]) -> dict[str, Any]:
    """Map canonical issue update fields onto a GitHub issue payload."""
    payload: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "assignee":
            payload["assignees"] = [value] if value else []
        elif key == "labels":
            payload["labels"] = [
                label.name if isinstance(label, Label) else str(label)
                for label in value or []
            ]
        elif key == "state":
            payload["state"] = getattr(value, "value", value)
        else:
            payload[key] = value
    return payload


# --- GitLab ---

def gitlab_user(record: dict[str, Any] | None) -> dict[str, Any] | None:
    return _user_dict(record, "username", "web_url")


def normalize_gitlab_user(record: dict[str, Any]) -> User:
    return User.from_dict(gitlab_user(record) or USER_DEFAULTS)


def _gitlab_assignee(record: dict[str, Any]) -> dict[str, Any] | None:
    assignee = record.get("assignee")
    if not assignee and record.get("assignees"):
        assignee = record["assignees"][0]
    return gitlab_user(assignee)


def normalize_gitlab_issue(record: dict[str, Any]) -> Issue:
    return Issue.from_dict(merge_defaults(ISSUE_DEFAULTS, {
        "id": record.get("id"),
        "number": record.get("iid"),
        "display_id": compose_display_id(record.get("iid"), record.get("id")),
        "title": record.get("title"),
        "body": record.get("description"),
        "user": gitlab_user(record.get("author")),
        "assignee": _gitlab_assignee(record),
        "state": ISSUE_STATES.get(record.get("state", "")),
        "labels": [{"name": label} for label in record.get("labels") or []],
        "url": record.get("web_url"),
        "created_at": record.get("created_at"),
        "updated_at": record.get("updated_at"),
    }))


def normalize_gitlab_merge_request(
    record: dict[str, Any],
    merge_message: str | None = None,
) -> PullRequest:
    state = PULL_REQUEST_STATES.get(record.get("state", ""))
    author = gitlab_user(record.get("author"))
    return PullRequest.from_dict(merge_defaults(PULL_REQUEST_DEFAULTS, {
        "id": record.get("id"),
        "number": record.get("iid"),
        "display_id": compose_display_id(record.get("iid"), record.get("id")),
        "title": record.get("title"),
        "body": record.get("description"),
        "user": author,
        "state": state,
        "head": {"branch": record.get("source_branch"), "user": author},
        "base": {"branch": record.get("target_branch")},
        "merged": state == "merged",
        "merge_message": merge_message,
        "url": record.get("web_url"),
        "created_at": record.get("created_at"),
        "updated_at": record.get("updated_at"),
    }))


def _gitlab_owner(record: dict[str, Any]) -> str | None:
    owner = record.get("owner") or {}
    if owner.get("username"):
        return owner["username"]
    namespace = record.get("namespace") or {}
    return namespace.get("full_path") or namespace.get("path")


def _gitlab_is_private(record: dict[str, Any]) -> bool | None:
    if "visibility" in record:
        return record["visibility"] != "public"
    if "public" in record:
        return not record["public"]
    return None


def normalize_gitlab_project(record: dict[str, Any]) -> Project:
    origin = record.get("forked_from_project") or {}
    return Project.from_dict(merge_defaults(PROJECT_DEFAULTS, {
        "id": record.get("id"),
        "name": record.get("path") or record.get("name"),
        "owner": _gitlab_owner(record),
        "url": record.get("web_url"),
        "fetch_url": record.get("ssh_url_to_repo"),
        "push_url": record.get("ssh_url_to_repo"),
        "is_private": _gitlab_is_private(record),
        "is_fork": bool(origin),
        "fork_origin": origin.get("path_with_namespace"),
    }))


def normalize_gitlab_note(record: dict[str, Any], parent_url: str | None) -> Comment:
    note_id = record.get("id")
    return Comment.from_dict(merge_defaults(COMMENT_DEFAULTS, {
        "id": note_id,
        "body": record.get("body"),
        "user": gitlab_user(record.get("author")),
        "url": f"{parent_url}#note_{note_id}" if parent_url else None,
        "created_at": record.get("created_at"),
    }))


def normalize_gitlab_milestone(record: dict[str, Any]) -> Milestone:
    return Milestone.from_dict(merge_defaults(MILESTONE_DEFAULTS, {
        "id": record.get("id"),
        "number": record.get("iid"),
        "title": record.get("title"),
        "description": record.get("description"),
        "state": MILESTONE_STATES.get(record.get("state", "")),
        "due_on": record.get("due_date"),
    }))


def normalize_gitlab_commit(record: dict[str, Any]) -> Commit:
    return Commit.from_dict(merge_defaults(COMMIT_DEFAULTS, {
        "sha": record.get("id"),
        "message": record.get("message"),
        "author": record.get("author_name"),
        "url": record.get("web_url"),
    }))


def gitlab_issue_payload(fields: dict[str, Any], assignee_id: int | None = None) -> dict[str, Any]:
    """
    Map canonical issue update fields onto a GitLab issue payload.

    The assignee must already be resolved to a user id by the caller.
    """
    payload: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "body":
            payload["description"] = value
        elif key == "state":
            state = getattr(value, "value", value)
            payload["state_event"] = "close" if state == "closed" else "reopen"
        elif key == "labels":
            payload["labels"] = ",".join(
                label.name if isinstance(label, Label) else str(label)
                for label in value or []
            )
        elif key == "assignee":
            payload["assignee_ids"] = [assignee_id] if assignee_id is not None else []
        elif key == "milestone":
            payload["milestone_id"] = value
        else:
            payload[key] = value
    return payload
