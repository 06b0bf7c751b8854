"""
Project resolution.

Finds the hosted project matching ``owner/repository`` by paging through
the projects the authenticated user can access, and remembers it for the
lifetime of the resolver (one per adapter instance).
"""

from typing import Any, Callable

from forgekit.adapter.errors import ProjectNotFound
from forgekit.adapter.pagination import iter_pages
from forgekit.adapter.types import Project
from forgekit.logger import get_logger

log = get_logger("resolver")


class ProjectResolver:
    """
    Memoizing lookup of the active project.

    Args:
        client: Provider client
        owner: Namespace/owner login
        repository: Repository name
        listing_path: Path of the accessible-projects listing
        listing_params: Query parameters for the listing (page size etc.)
        path_of: Returns a listing record's "namespace/name" path
        normalize: Maps a matching record to a canonical Project
    """

    def __init__(
        self,
        client,
        owner: str,
        repository: str,
        listing_path: str,
        listing_params: dict[str, Any] | None,
        path_of: Callable[[dict[str, Any]], str | None],
        normalize: Callable[[dict[str, Any]], Project],
    ):
        self._client = client
        self.owner = owner
        self.repository = repository
        self._listing_path = listing_path
        self._listing_params = listing_params or {}
        self._path_of = path_of
        self._normalize = normalize
        self._project: Project | None = None

    @property
    def resolved(self) -> bool:
        return self._project is not None

    def resolve(self) -> Project:
        """
        Return the active project, resolving it on first use.

        Raises:
            ProjectNotFound: When no accessible project matches
        """
        if self._project is None:
            self._project = self.find(self.owner, self.repository)
            log.info("Resolved project", owner=self.owner, repository=self.repository,
                     project_id=self._project.id)
        return self._project

    def find(self, owner: str, repository: str) -> Project:
        """
        Look up any accessible project without memoizing it.

        The first exact, case-sensitive path match wins; no page after the
        matching one is fetched.
        """
        wanted = f"{owner}/{repository}"
        for page in iter_pages(self._client, self._listing_path, dict(self._listing_params)):
            for record in page:
                if self._path_of(record) == wanted:
                    return self._normalize(record)
        raise ProjectNotFound(owner, repository)
