"""Pytest configuration for forgekit tests."""
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

# Add project root to path so 'forgekit' can be imported without installing
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@dataclass
class Page:
    """A listing page served by FakeClient, with its continuation link."""
    items: list[dict[str, Any]]
    next_url: str | None = None


@dataclass
class FakeClient:
    """
    Scripted stand-in for a provider REST client.

    Responses are keyed by (METHOD, path). A response may be a value, a Page,
    an exception instance (raised), or a callable taking the call kwargs.
    Every call is recorded in ``calls``.
    """
    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    calls: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)
    auth_calls: list[tuple[Any, str, str | None]] = field(default_factory=list)
    _next_url: str | None = None

    def add(self, method: str, path: str, response: Any) -> None:
        self.routes[(method.upper(), path)] = response

    def add_pages(self, path: str, pages: list[list[dict[str, Any]]]) -> list[str]:
        """Serve ``pages`` from ``path`` chained by continuation links."""
        urls = [path] + [f"https://api.example.test/{path}?page={n}" for n in range(2, len(pages) + 1)]
        for index, items in enumerate(pages):
            next_url = urls[index + 1] if index + 1 < len(urls) else None
            self.add("GET", urls[index], Page(items, next_url))
        return urls

    def request(self, method: str, path: str, **kwargs) -> Any:
        self.calls.append((method, path, kwargs))
        key = (method, path)
        if key not in self.routes:
            raise AssertionError(f"Unexpected provider call: {method} {path}")
        response = self.routes[key]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(**kwargs)
        if isinstance(response, Page):
            self._next_url = response.next_url
            return response.items
        self._next_url = None
        return response

    def get(self, path, params=None):
        return self.request("GET", path, params=params)

    def post(self, path, json=None, **kwargs):
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path, json=None, **kwargs):
        return self.request("PUT", path, json=json, **kwargs)

    def patch(self, path, json=None, **kwargs):
        return self.request("PATCH", path, json=json, **kwargs)

    def delete(self, path, **kwargs):
        return self.request("DELETE", path, **kwargs)

    def next_page_url(self):
        return self._next_url

    def authenticate(self, scheme, secret, username=None):
        self.auth_calls.append((scheme, secret, username))

    def calls_to(self, method: str, path: str) -> list[dict[str, Any]]:
        return [kwargs for m, p, kwargs in self.calls if m == method and p == path]


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def github_config():
    return {
        "base_url": "https://api.github.com/",
        "repo_domain_url": "https://github.com/",
        "per_page": 50,
        "authentication": {
            "http-auth-type": "http_token",
            "username": "octocat",
            "password-or-token": "gh-secret",
        },
    }


@pytest.fixture
def gitlab_config():
    return {
        "base_url": "https://gitlab.example.com/api/v4",
        "repo_domain_url": "https://gitlab.example.com",
        "per_page": 100,
        "authentication": {
            "http-auth-type": "http_token",
            "password-or-token": "gl-secret",
        },
    }


def gitlab_project_record(project_id: int, path: str, **extra) -> dict[str, Any]:
    namespace, name = path.split("/", 1)
    record = {
        "id": project_id,
        "name": name.capitalize(),
        "path": name,
        "path_with_namespace": path,
        "namespace": {"path": namespace, "full_path": namespace},
        "owner": {"id": 1, "username": namespace},
        "web_url": f"https://gitlab.example.com/{path}",
        "ssh_url_to_repo": f"git@gitlab.example.com:{path}.git",
        "visibility": "private",
    }
    record.update(extra)
    return record


@pytest.fixture
def project_record():
    """Factory for GitLab project listing records."""
    return gitlab_project_record
