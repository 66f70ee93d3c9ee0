import posixpath
import re
from typing import Optional

# Characters a download file name may never carry.
_SPECIAL_CHARS = re.compile(r"[?\[\]/\\=<>:;,'\"&$#*()|~`!{}%+\x00]")
_WHITESPACE = re.compile(r"[\s-]+")


def repository_slug(path: Optional[str]) -> str:
    """
    Derives a repository slug from its releases feed path.

    The slug is the base name of the feed's parent directory, so
    ``https://github.com/imath/galerie/releases`` gives ``galerie``.
    """
    if not path:
        return ""
    return posixpath.basename(posixpath.dirname(path.rstrip("/")))


def package_slug(plugin_key: str) -> str:
    """Returns the directory part of an installed package key, e.g. ``galerie/galerie.php`` -> ``galerie``."""
    return posixpath.dirname(plugin_key).strip("/")


def sanitize_file_name(name: str) -> str:
    name = _SPECIAL_CHARS.sub("", name)
    name = _WHITESPACE.sub("-", name)
    return name.strip(".-_")


def strip_scheme(uri: str) -> str:
    """``https://github.com/imath/galerie/`` -> ``github.com/imath/galerie``."""
    return re.sub(r"^https?://", "", uri).rstrip("/")


def download_url(upstream_uri: str, tag: str, slug: str) -> str:
    return "{}/releases/download/{}/{}".format(
        upstream_uri.rstrip("/"),
        tag,
        sanitize_file_name(f"{slug}.zip"),
    )
