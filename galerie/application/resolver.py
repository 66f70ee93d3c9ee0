import logging

from galerie.domain.exceptions import NoBaselineException
from galerie.domain.models import (
    INSTALL_VERSION,
    Feed,
    InstalledPackage,
    PackageIdentity,
    UpdateDescriptor,
)
from galerie.domain.naming import download_url, strip_scheme
from galerie.domain.versions import compare_versions, is_stable_tag, tag_from_id

logger = logging.getLogger(__name__)


class ReleaseResolver:
    """
    Picks the release an installed package should move to.

    Entries are trusted to be newest-first, as upstream feeds publish them:
    the first stable entry that qualifies wins and nothing is re-sorted.
    """

    @staticmethod
    def require_baseline(installed: InstalledPackage) -> str:
        """Returns the declared version, for callers that must not go on without one."""
        if not installed.version:
            raise NoBaselineException(installed.plugin_key)
        return installed.version

    def resolve(self, feed: Feed, installed: InstalledPackage) -> UpdateDescriptor:
        """
        Resolves the latest stable release of a feed against an installed package.

        Args:
            feed (Feed): The package's release feed.
            installed (InstalledPackage): The locally installed package.

        Returns:
            UpdateDescriptor: An update (``is_update``), an install target when the
            declared version is ``"latest"`` (``is_install``), or the sentinel.
        """
        for entry in feed.entries:
            if not entry.id:
                continue

            tag = tag_from_id(entry.id)
            # Pre-releases (1.2.0-beta, 2.0rc1...) carry letters once dots are gone.
            if not is_stable_tag(tag):
                continue

            if not installed.version:
                logger.debug(f"{installed.plugin_key} declares no version, nothing to compare with.")
                return UpdateDescriptor.no_update()

            notice = entry.content[-1] if entry.content else None

            if installed.version == INSTALL_VERSION:
                return self._descriptor(entry.id, tag, installed, is_install=True, full_upgrade_notice=notice)

            if compare_versions(tag, installed.version) <= 0:
                continue

            return self._descriptor(entry.id, tag, installed, is_update=True, full_upgrade_notice=notice)

        return UpdateDescriptor.no_update()

    @staticmethod
    def _descriptor(entry_id: str, tag: str, installed: InstalledPackage, **flags) -> UpdateDescriptor:
        uri = installed.upstream_uri or ""
        return UpdateDescriptor(
            id=strip_scheme(uri) if uri else entry_id,
            new_version=tag,
            identity=PackageIdentity(slug=installed.slug, plugin_key=installed.plugin_key, uri=uri),
            package=download_url(uri, tag, installed.slug) if uri else "",
            **flags,
        )
