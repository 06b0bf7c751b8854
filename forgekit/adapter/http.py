"""
Provider REST clients.

Thin wrappers over a ``requests.Session``: they authenticate, send calls
relative to the configured API base URL, decode JSON, and expose the
continuation link of the last response. No retries or caching happen
here.
"""

from contextlib import contextmanager
from typing import Any, Iterator

import requests

from forgekit.adapter.auth import AuthScheme
from forgekit.adapter.errors import NotFound
from forgekit.logger import get_logger

log = get_logger("http")


class ProviderError(Exception):
    """A provider answered with a non-2xx status."""

    def __init__(self, status: int, message: str, method: str = "", url: str = ""):
        super().__init__(f"HTTP {status} on {method} {url}: {message}")
        self.status = status
        self.message = message
        self.method = method
        self.url = url


@contextmanager
def not_found_as(kind: str, key: Any, operation: str) -> Iterator[None]:
    """Re-raise a 404 from the wrapped provider call as NotFound(kind, key)."""
    try:
        yield
    except ProviderError as e:
        if e.status == 404:
            raise NotFound(kind, str(key), operation) from e
        raise


class RestClient:
    """Authenticated JSON client for one provider API."""

    provider = "rest"

    def __init__(
        self,
        base_url: str,
        timeout_s: int = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.session.headers.setdefault("Accept", "application/json")
        self.last_response: requests.Response | None = None

    def authenticate(self, scheme: AuthScheme, secret: str, username: str | None = None) -> None:
        raise NotImplementedError

    def url_for(self, path: str) -> str:
        """Absolute URLs (continuation links, upload URLs) pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        data: bytes | str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Send one call and decode its body.

        Returns:
            Decoded JSON, or None for empty bodies (204 and friends)

        Raises:
            ProviderError: For any non-2xx response
            requests.RequestException: For transport failures
        """
        url = self.url_for(path)
        response = self.session.request(
            method,
            url,
            params=params,
            json=json,
            data=data,
            headers=headers,
            timeout=self.timeout_s,
        )
        self.last_response = response
        log.debug("Provider call", provider=self.provider, method=method, url=url,
                  status=response.status_code)

        if response.status_code >= 400:
            raise ProviderError(response.status_code, self._error_message(response), method, url)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or body
            return str(message)
        return str(body)

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, **kwargs) -> Any:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs) -> Any:
        return self.request("PUT", path, json=json, **kwargs)

    def patch(self, path: str, json: Any = None, **kwargs) -> Any:
        return self.request("PATCH", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)

    def next_page_url(self) -> str | None:
        """Continuation link (Link: rel="next") of the last response."""
        if self.last_response is None:
            return None
        return self.last_response.links.get("next", {}).get("url")


class GitHubRestClient(RestClient):
    """GitHub REST v3 client."""

    provider = "github"

    def __init__(self, base_url: str = "https://api.github.com", **kwargs):
        super().__init__(base_url, **kwargs)
        self.session.headers["Accept"] = "application/vnd.github+json"

    def authenticate(self, scheme: AuthScheme, secret: str, username: str | None = None) -> None:
        if scheme is AuthScheme.HTTP_PASSWORD:
            self.session.auth = (username or "", secret)
            self.session.headers.pop("Authorization", None)
        else:
            self.session.auth = None
            self.session.headers["Authorization"] = f"token {secret}"


class GitLabRestClient(RestClient):
    """GitLab REST v4 client."""

    provider = "gitlab"

    def __init__(self, base_url: str = "https://gitlab.com/api/v4", **kwargs):
        super().__init__(base_url, **kwargs)

    def authenticate(self, scheme: AuthScheme, secret: str, username: str | None = None) -> None:
        self.session.headers["PRIVATE-TOKEN"] = secret
