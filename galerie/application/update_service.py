import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol
import aiohttp

from galerie.application.registry import RepositoryRegistry
from galerie.application.resolver import ReleaseResolver
from galerie.domain.exceptions import GalerieException
from galerie.domain.models import Feed, InstalledPackage, UpdateDescriptor, UpdateTransient
from galerie.infrastructure.feed_client import AtomFeedClient, feed_url

logger = logging.getLogger(__name__)

# Limit concurrent connections to upstream hosts
CONNECTOR_LIMIT = 10


class HostPackageManager(Protocol):
    async def installed_packages(self) -> List[InstalledPackage]:
        ...

    async def save_update_transient(self, transient: UpdateTransient) -> None:
        ...


class UpdateService:
    """
    Service merging upstream releases of tracked packages into the host's update list.

    A cycle only runs when the host signals that an upstream update check
    happened, and merges at most once: calls made while the merged list is
    being persisted (the host's save path triggering us again) are ignored.
    """

    def __init__(
            self,
            feed_client: AtomFeedClient,
            registry: RepositoryRegistry,
            host: HostPackageManager,
            resolver: Optional[ReleaseResolver] = None,
            max_concurrent_fetches: int = 1,
    ):
        self.feed_client = feed_client
        self.registry = registry
        self.host = host
        self.resolver = resolver or ReleaseResolver()
        self.max_concurrent_fetches = max(1, max_concurrent_fetches)
        self._in_cycle = False

    async def run_cycle(self, transient: UpdateTransient, triggered: bool) -> UpdateTransient:
        """
        Runs one update-check cycle.

        Args:
            transient (UpdateTransient): The host's current update list.
            triggered (bool): Whether the host's upstream update check happened.

        Returns:
            UpdateTransient: The merged update list, or ``transient`` unchanged when
            nothing ran or no tracked package has an update.
        """
        if not triggered or self._in_cycle:
            return transient

        self._in_cycle = True
        try:
            packages = [p for p in await self.host.installed_packages() if p.is_tracked]
            logger.info(f"Checking {len(packages)} tracked packages for upstream releases.")

            semaphore = asyncio.Semaphore(self.max_concurrent_fetches)
            async with aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=CONNECTOR_LIMIT),
            ) as session:

                async def _bounded(package: InstalledPackage) -> UpdateDescriptor:
                    async with semaphore:
                        return await self.check_package(session, package)

                descriptors = await asyncio.gather(*(_bounded(p) for p in packages))

            # Merge order follows plugin keys, never fetch completion order.
            updates: Dict[str, UpdateDescriptor] = {
                package.plugin_key: descriptor
                for package, descriptor in sorted(zip(packages, descriptors), key=lambda pair: pair[0].plugin_key)
                if descriptor.is_update
            }

            if not updates:
                logger.info("No upstream updates found.")
                return transient

            merged = transient.merged_with(updates, checked_at=datetime.now(timezone.utc))
            await self.host.save_update_transient(merged)
            logger.info(f"Merged {len(updates)} upstream updates: {', '.join(updates)}.")
            return merged
        finally:
            self._in_cycle = False

    async def check_package(self, session: aiohttp.ClientSession, package: InstalledPackage) -> UpdateDescriptor:
        """
        Resolves one installed package. Any failure along the way degrades to the
        "no update" sentinel for this package only.
        """
        try:
            # No declared version means nothing to compare; spare the feed request.
            self.resolver.require_baseline(package)
            repository = await self.registry.find_by_plugin_key(package.plugin_key)
            feed = await self._feed(session, repository.releases)
        except GalerieException as e:
            logger.warning(f"Skipping {package.plugin_key}: {e}")
            return UpdateDescriptor.no_update()

        return self.resolver.resolve(feed, package)

    async def _feed(self, session: aiohttp.ClientSession, releases: str) -> Feed:
        url = feed_url(releases)
        feed = self.registry.cached_feed(url)
        if feed is not None:
            logger.debug(f"Using cached feed {url}.")
            return feed

        feed = await self.feed_client.fetch(session, url)
        self.registry.remember_feed(url, feed)
        return feed
