"""
Canonical entity types.

These are the provider-agnostic shapes every adapter returns. Normalizers
in ``forgekit.adapter.normalize`` build them from provider records; callers
never see a provider's own field names.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class IssueState(Enum):
    """Canonical issue states."""
    OPEN = "open"
    CLOSED = "closed"


class PullRequestState(Enum):
    """
    Canonical pull/merge request states.

    MERGED is distinct from CLOSED: a merged request is never reported
    as closed, even on providers whose API folds the two together.
    """
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 provider timestamp ('Z' suffix accepted)."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class User:
    """A provider account."""
    login: str = ""
    id: int | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "login": self.login, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(login=data.get("login", ""), id=data.get("id"), url=data.get("url"))


def _user_or_none(data: dict[str, Any] | None) -> User | None:
    return User.from_dict(data) if data else None


@dataclass(frozen=True)
class Label:
    name: str
    color: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Label":
        return cls(name=data.get("name", ""), color=data.get("color"))


@dataclass(frozen=True)
class Ref:
    """A branch reference together with the user owning its repository."""
    branch: str = ""
    user: User | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "user": self.user.to_dict() if self.user else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Ref":
        return cls(branch=data.get("branch", ""), user=_user_or_none(data.get("user")))


@dataclass
class Issue:
    """
    Canonical issue.

    Attributes:
        id: Provider's primary numeric id
        number: Display number shown in the provider UI; operations take this
        display_id: "{number} ({id})" when both exist and differ
        user: Author
        assignee: Assigned user, None when unassigned
        labels: Labels (empty on providers without label support)
    """
    id: int | None
    number: int | None
    title: str
    display_id: str = ""
    body: str = ""
    user: User = field(default_factory=User)
    assignee: User | None = None
    state: IssueState = IssueState.OPEN
    labels: list[Label] = field(default_factory=list)
    url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "display_id": self.display_id,
            "title": self.title,
            "body": self.body,
            "user": self.user.to_dict(),
            "assignee": self.assignee.to_dict() if self.assignee else None,
            "state": self.state.value,
            "labels": [label.to_dict() for label in self.labels],
            "url": self.url,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Issue":
        return cls(
            id=data.get("id"),
            number=data.get("number"),
            display_id=data.get("display_id", ""),
            title=data.get("title", ""),
            body=data.get("body", ""),
            user=User.from_dict(data.get("user") or {}),
            assignee=_user_or_none(data.get("assignee")),
            state=IssueState(data.get("state", "open")),
            labels=[Label.from_dict(item) for item in data.get("labels", [])],
            url=data.get("url"),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


@dataclass
class PullRequest:
    """Canonical pull request (GitHub) or merge request (GitLab)."""
    id: int | None
    number: int | None
    title: str
    display_id: str = ""
    body: str = ""
    user: User = field(default_factory=User)
    state: PullRequestState = PullRequestState.OPEN
    head: Ref = field(default_factory=Ref)
    base: Ref = field(default_factory=Ref)
    merged: bool = False
    merge_message: str | None = None
    url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "display_id": self.display_id,
            "title": self.title,
            "body": self.body,
            "user": self.user.to_dict(),
            "state": self.state.value,
            "head": self.head.to_dict(),
            "base": self.base.to_dict(),
            "merged": self.merged,
            "merge_message": self.merge_message,
            "url": self.url,
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PullRequest":
        return cls(
            id=data.get("id"),
            number=data.get("number"),
            display_id=data.get("display_id", ""),
            title=data.get("title", ""),
            body=data.get("body", ""),
            user=User.from_dict(data.get("user") or {}),
            state=PullRequestState(data.get("state", "open")),
            head=Ref.from_dict(data.get("head") or {}),
            base=Ref.from_dict(data.get("base") or {}),
            merged=bool(data.get("merged", False)),
            merge_message=data.get("merge_message"),
            url=data.get("url"),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


@dataclass
class Project:
    """
    Canonical hosted repository.

    fetch_url and push_url may coincide. fork_origin is "owner/name" of the
    parent when is_fork is set.
    """
    id: int | None
    name: str = ""
    owner: str | None = None
    url: str | None = None
    fetch_url: str | None = None
    push_url: str | None = None
    is_private: bool = True
    is_fork: bool = False
    fork_origin: str | None = None

    @property
    def path(self) -> str:
        return f"{self.owner}/{self.name}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "url": self.url,
            "fetch_url": self.fetch_url,
            "push_url": self.push_url,
            "is_private": self.is_private,
            "is_fork": self.is_fork,
            "fork_origin": self.fork_origin,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            owner=data.get("owner"),
            url=data.get("url"),
            fetch_url=data.get("fetch_url"),
            push_url=data.get("push_url"),
            is_private=bool(data.get("is_private", True)),
            is_fork=bool(data.get("is_fork", False)),
            fork_origin=data.get("fork_origin"),
        )


@dataclass
class Comment:
    id: int | None
    body: str = ""
    user: User = field(default_factory=User)
    url: str | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "body": self.body,
            "user": self.user.to_dict(),
            "url": self.url,
            "created_at": _isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=data.get("id"),
            body=data.get("body", ""),
            user=User.from_dict(data.get("user") or {}),
            url=data.get("url"),
            created_at=parse_timestamp(data.get("created_at")),
        )


@dataclass
class Milestone:
    id: int | None
    title: str = ""
    number: int | None = None
    description: str = ""
    state: str = "open"
    due_on: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "number": self.number,
            "title": self.title,
            "description": self.description,
            "state": self.state,
            "due_on": _isoformat(self.due_on),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Milestone":
        return cls(
            id=data.get("id"),
            number=data.get("number"),
            title=data.get("title", ""),
            description=data.get("description", ""),
            state=data.get("state", "open"),
            due_on=parse_timestamp(data.get("due_on")),
        )


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str = ""
    author: str = ""
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"sha": self.sha, "message": self.message, "author": self.author, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Commit":
        return cls(
            sha=data.get("sha", ""),
            message=data.get("message", ""),
            author=data.get("author", ""),
            url=data.get("url"),
        )


@dataclass
class Release:
    id: int | None
    tag_name: str = ""
    name: str = ""
    body: str = ""
    draft: bool = False
    prerelease: bool = False
    url: str | None = None
    upload_url: str | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tag_name": self.tag_name,
            "name": self.name,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
            "url": self.url,
            "upload_url": self.upload_url,
            "created_at": _isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Release":
        return cls(
            id=data.get("id"),
            tag_name=data.get("tag_name", ""),
            name=data.get("name", ""),
            body=data.get("body", ""),
            draft=bool(data.get("draft", False)),
            prerelease=bool(data.get("prerelease", False)),
            url=data.get("url"),
            upload_url=data.get("upload_url"),
            created_at=parse_timestamp(data.get("created_at")),
        )


@dataclass(frozen=True)
class ReleaseAsset:
    id: int | None
    name: str = ""
    content_type: str = ""
    size: int = 0
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content_type": self.content_type,
            "size": self.size,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReleaseAsset":
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            content_type=data.get("content_type", ""),
            size=int(data.get("size") or 0),
            url=data.get("url"),
        )


@dataclass
class IssueFilters:
    """
    Filters for listing issues. None means "no filter".

    Attributes:
        state: "open", "closed" or "all"
        creator: Author login
        assignee: Assignee login
    """
    state: str | None = None
    creator: str | None = None
    assignee: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "IssueFilters":
        data = data or {}
        return cls(
            state=data.get("state"),
            creator=data.get("creator"),
            assignee=data.get("assignee"),
        )
