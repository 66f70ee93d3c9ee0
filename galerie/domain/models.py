from datetime import datetime
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from galerie.domain.naming import package_slug

INSTALL_VERSION = "latest"


class Repository(BaseModel):
    """
    Immutable domain model representing a tracked upstream repository.
    Loaded once from the catalog; identified by its slug.
    """
    model_config = ConfigDict(frozen=True)

    slug: str = Field("", description="Base name of the releases feed's parent directory")
    releases: Optional[str] = Field(None, description="Upstream releases feed path or URL")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Remaining catalog fields (name, description, ...), kept verbatim"
    )


class InstalledPackage(BaseModel):
    """A package the host reports as installed. Read-only to the release tracker."""
    model_config = ConfigDict(frozen=True)

    plugin_key: str = Field(..., description="Path-like identifier, e.g. galerie/galerie.php")
    version: str = Field("", description="Declared version, empty when unknown")
    upstream_uri: Optional[str] = Field(None, description="The GitHub Plugin URI header value")

    @property
    def slug(self) -> str:
        return package_slug(self.plugin_key)

    @property
    def is_tracked(self) -> bool:
        return bool(self.upstream_uri)


class FeedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    content: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None


class Feed(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: List[FeedEntry] = Field(default_factory=list)


class PackageIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    slug: str
    plugin_key: str
    uri: str


class UpdateDescriptor(BaseModel):
    """
    Result of resolving one installed package against its release feed.

    The default instance (both flags false, every other field empty) is the
    "no update" sentinel.
    """
    model_config = ConfigDict(frozen=True)

    is_update: bool = False
    is_install: bool = False
    id: str = ""
    new_version: str = ""
    identity: Optional[PackageIdentity] = None
    package: str = ""
    full_upgrade_notice: Optional[str] = None

    @classmethod
    def no_update(cls) -> "UpdateDescriptor":
        return cls()

    def to_response(self) -> Dict[str, Any]:
        """
        Renders the descriptor as the record the host stores in its update list.

        Returns:
            Dict[str, Any]: ``id, slug, plugin, new_version, url, package``, plus
            ``download_link, version, name`` in install mode and
            ``full_upgrade_notice`` when the release carried notes.
        """
        identity = self.identity or PackageIdentity(slug="", plugin_key="", uri="")
        record: Dict[str, Any] = {
            'id': self.id,
            'slug': identity.slug,
            'plugin': identity.plugin_key,
            'new_version': self.new_version,
            'url': identity.uri,
            'package': self.package,
        }
        if self.is_install:
            record['download_link'] = self.package
            record['version'] = self.new_version
            record['name'] = identity.slug
        if self.full_upgrade_notice:
            record['full_upgrade_notice'] = self.full_upgrade_notice
        return record


class UpdateTransient(BaseModel):
    """
    The host's shared update list, keyed by installed package key.
    Fields the host stores beside ``response`` are carried through untouched.
    """
    model_config = ConfigDict(frozen=True, extra='allow')

    response: Dict[str, Any] = Field(default_factory=dict)
    last_checked: Optional[datetime] = None

    def merged_with(self, updates: Dict[str, UpdateDescriptor], checked_at: datetime) -> "UpdateTransient":
        # Unrelated keys survive; our records win on collision.
        response = dict(self.response)
        for plugin_key, descriptor in updates.items():
            response[plugin_key] = descriptor.to_response()
        return self.model_copy(update={'response': response, 'last_checked': checked_at})
