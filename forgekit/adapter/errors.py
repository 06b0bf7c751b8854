"""
Adapter error taxonomy.

Every failure a caller is expected to branch on is one of these kinds.
Each carries the operation and the identifiers involved so the CLI layer
can render a useful message without knowing which provider raised it.
"""


class AdapterError(Exception):
    """Base class for all typed adapter failures."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class UnsupportedAuthScheme(AdapterError):
    """Configured authentication scheme is not accepted by the provider."""

    def __init__(self, provider: str, scheme: str, accepted: tuple[str, ...]):
        super().__init__(
            f"Authentication type for {provider} must be one of: "
            f"{', '.join(accepted)} (configured: {scheme or 'none'})",
            operation="authenticate",
        )
        self.provider = provider
        self.scheme = scheme
        self.accepted = accepted


class NotSupported(AdapterError):
    """The provider has no concept backing the requested operation."""

    def __init__(self, provider: str, operation: str, feature: str):
        super().__init__(
            f"{feature.capitalize()} are not supported by {provider}",
            operation=operation,
        )
        self.provider = provider
        self.feature = feature


class NotFound(AdapterError):
    """A looked-up entity (user, issue, ...) does not exist."""

    def __init__(self, kind: str, key: str, operation: str | None = None):
        super().__init__(f"Could not find {kind} {key}", operation=operation)
        self.kind = kind
        self.key = key


class ProjectNotFound(NotFound):
    """No accessible project matches owner/repository."""

    def __init__(self, owner: str, repository: str):
        super().__init__("project", f"{owner}/{repository}", operation="resolve_project")
        self.owner = owner
        self.repository = repository


class NotMergeable(AdapterError):
    """The provider rejected a merge request."""

    def __init__(self, number: int, reason: str):
        super().__init__(
            f"Pull request {number} is not mergeable: {reason}",
            operation="merge_pull_request",
        )
        self.number = number
        self.reason = reason
