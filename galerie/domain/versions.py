"""Version comparison helpers.

Release tags are compared the way most upstream projects number them: numeric
components numerically, textual ones lexically, with a missing trailing
component counting as zero.
"""

import re
from itertools import zip_longest
from typing import List, Optional, Union

_SEPARATORS = re.compile(r"[.\-_+]")
_CHUNKS = re.compile(r"\d+|[^\d]+")


def compare_versions(a: str, b: str) -> int:
    """
    Compares two version strings.

    Args:
        a (str): Left-hand version, e.g. ``"2.0.0"``.
        b (str): Right-hand version.

    Returns:
        int: -1 if ``a`` is lower than ``b``, 0 if they are equal, 1 if ``a`` is greater.
    """
    for left, right in zip_longest(_version_parts(a), _version_parts(b), fillvalue=0):
        if left == right:
            continue
        if isinstance(left, int) and isinstance(right, int):
            return -1 if left < right else 1
        # A number always outranks a textual marker such as "beta" or "rc".
        if isinstance(left, int):
            return 1
        if isinstance(right, int):
            return -1
        return -1 if left < right else 1
    return 0


def _version_parts(version: str) -> List[Union[int, str]]:
    version = (version or "").strip()
    if version[:1] in ("v", "V"):
        version = version[1:]

    parts: List[Union[int, str]] = []
    for component in _SEPARATORS.split(version):
        for chunk in _CHUNKS.findall(component):
            parts.append(int(chunk) if chunk.isdecimal() else chunk.lower())
    return parts


def tag_from_id(entry_id: Optional[str]) -> str:
    """Returns the last ``/`` delimited segment of a feed entry id."""
    if not entry_id:
        return ""
    return entry_id.split("/")[-1]


def is_stable_tag(tag: str) -> bool:
    """A tag is stable when it only holds digits once its dots are removed."""
    stripped = tag.replace(".", "")
    return stripped.isascii() and stripped.isdigit()
