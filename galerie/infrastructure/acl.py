import io
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional, Tuple
import feedparser

from galerie.domain.exceptions import CatalogUnreadableException, FeedParseException
from galerie.domain.models import Feed, FeedEntry, Repository
from galerie.domain.naming import repository_slug

logger = logging.getLogger(__name__)


def _entry_date(entry) -> Optional[datetime]:
    # feedparser normalizes dates to UTC struct_time, or None when unparseable.
    parsed = entry.get('published_parsed') or entry.get('updated_parsed')
    if not parsed:
        return None
    return datetime(*parsed[:6], tzinfo=timezone.utc)


class AtomTranslator:
    """
    Anti-corruption layer that translates raw Atom release feeds into Feed instances.
    """

    @staticmethod
    def to_feed(body: bytes, url: str = "") -> Feed:
        """
        Parses an Atom document into a Feed, keeping entries in document order.

        Args:
            body (bytes): The raw response body.
            url (str): The feed URL, only used in error messages.

        Returns:
            Feed: The parsed feed; it may hold zero entries.

        Raises:
            FeedParseException: If the body is not recognized as a feed.
        """
        parsed = feedparser.parse(io.BytesIO(body))

        if not parsed.get('version'):
            reason = parsed.get('bozo_exception') if parsed.get('bozo') else "not an Atom feed"
            raise FeedParseException(url, str(reason))
        if parsed.get('bozo'):
            logger.debug(f"Feed {url} is not well-formed, kept what could be parsed: {parsed.get('bozo_exception')}")

        entries = []
        for entry in parsed.entries:
            entries.append(FeedEntry(
                id=entry.get('id') or None,
                content=[
                    block.value.strip() for block in entry.get('content', [])
                    if block.get('value', '').strip()
                ],
                published_at=_entry_date(entry),
            ))

        return Feed(entries=entries)


class CatalogTranslator:
    """
    Anti-corruption layer that translates the JSON repositories catalog into Repository instances.
    """

    @staticmethod
    def to_domain(raw: bytes, path: str = "") -> Tuple[Repository, ...]:
        """
        Raises:
            CatalogUnreadableException: If the document is not a JSON array.
        """
        try:
            data: Any = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise CatalogUnreadableException(path, str(e)) from e

        if not isinstance(data, list):
            raise CatalogUnreadableException(path, "expected a JSON array of repositories")

        repositories = []
        seen = set()
        for item in data:
            if not isinstance(item, dict):
                continue

            releases = item.get('releases')
            if not isinstance(releases, str) or not releases:
                releases = None
            slug = repository_slug(releases)

            if slug and slug in seen:
                logger.warning(f"Duplicate repository slug {slug!r} in catalog {path}, keeping the first one.")
                continue
            if slug:
                seen.add(slug)

            repositories.append(Repository(
                slug=slug,
                releases=releases,
                metadata={k: v for k, v in item.items() if k != 'releases'},
            ))

        return tuple(repositories)
