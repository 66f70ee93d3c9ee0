import asyncio
import logging
from typing import Dict, Optional, Tuple

from galerie.domain.exceptions import CatalogUnreadableException, RepositoryNotFoundException
from galerie.domain.models import Feed, Repository
from galerie.domain.naming import package_slug
from galerie.infrastructure.acl import CatalogTranslator
from galerie.infrastructure.catalog import CatalogSource

logger = logging.getLogger(__name__)


class RepositoryRegistry:
    """
    Process-wide cache of the repositories catalog.

    The catalog is read at most once per invalidation epoch; feeds fetched
    during the epoch are memoized alongside it. Only ``invalidate()`` clears
    either of them.
    """

    def __init__(self, source: CatalogSource, catalog_path: str):
        self.source = source
        self.catalog_path = catalog_path
        self._repositories: Optional[Tuple[Repository, ...]] = None
        self._feeds: Dict[str, Feed] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> Tuple[Repository, ...]:
        """
        Returns the cached repositories, reading the catalog on first use.

        An unreadable catalog is cached as an empty set so that every lookup
        of the epoch degrades the same way.
        """
        if self._repositories is not None:
            return self._repositories

        async with self._lock:
            # Another caller may have loaded it while we waited.
            if self._repositories is not None:
                return self._repositories

            try:
                try:
                    raw = await self.source.read_bytes(self.catalog_path)
                except OSError as e:
                    raise CatalogUnreadableException(self.catalog_path, str(e)) from e
                repositories = CatalogTranslator.to_domain(raw, self.catalog_path)
            except CatalogUnreadableException as e:
                logger.warning(f"{e} Tracking no repositories until the cache is invalidated.")
                repositories = ()

            logger.info(f"Loaded {len(repositories)} repositories from {self.catalog_path}.")
            self._repositories = repositories
            return repositories

    async def find_by_slug(self, slug: str) -> Repository:
        """
        Raises:
            RepositoryNotFoundException: If no repository with a releases feed has this slug.
        """
        if slug:
            for repository in await self.load():
                if repository.releases and repository.slug == slug:
                    return repository
        raise RepositoryNotFoundException(slug)

    async def find_by_plugin_key(self, plugin_key: str) -> Repository:
        return await self.find_by_slug(package_slug(plugin_key))

    def cached_feed(self, url: str) -> Optional[Feed]:
        return self._feeds.get(url)

    def remember_feed(self, url: str, feed: Feed) -> None:
        self._feeds[url] = feed

    def invalidate(self) -> None:
        self._repositories = None
        self._feeds = {}
        logger.debug("Repository registry invalidated.")
