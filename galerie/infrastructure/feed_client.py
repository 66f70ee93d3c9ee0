import aiohttp
import asyncio
import logging

from galerie.domain.exceptions import FeedUnavailableException
from galerie.domain.models import Feed
from galerie.infrastructure.acl import AtomTranslator

logger = logging.getLogger(__name__)

FEED_SUFFIX = ".atom"
DEFAULT_TIMEOUT_SECONDS = 30
CONNECT_TIMEOUT_SECONDS = 10


def feed_url(url: str) -> str:
    """
    Normalizes a releases path so it ends with exactly one ``.atom`` suffix.

    ``https://github.com/imath/galerie/releases`` and
    ``https://github.com/imath/galerie/releases.atom.atom`` both give
    ``https://github.com/imath/galerie/releases.atom``.
    """
    while url.endswith(FEED_SUFFIX):
        url = url[:-len(FEED_SUFFIX)]
    return url + FEED_SUFFIX


class AtomFeedClient:
    """
    Client fetching upstream release feeds.
    Performs a single bounded request per feed and hands the body to the Atom translator.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.headers = {
            "Accept": "application/atom+xml, application/xml;q=0.9, */*;q=0.1",
            "User-Agent": "galerie-release-tracker",
        }
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=min(timeout, CONNECT_TIMEOUT_SECONDS))

    async def fetch(self, session: aiohttp.ClientSession, url: str) -> Feed:
        """
        Fetches and parses a release feed.

        Args:
            session (aiohttp.ClientSession): The shared HTTP session.
            url (str): The releases path, with or without the ``.atom`` suffix.

        Returns:
            Feed: The parsed feed, entries in feed order.

        Raises:
            FeedUnavailableException: On transport failure, timeout or a non-2xx response.
            FeedParseException: If the body is not a well-formed Atom feed.
        """
        target = feed_url(url)

        try:
            async with session.get(target, headers=self.headers, timeout=self.timeout) as response:
                if not 200 <= response.status < 300:
                    logger.warning(f"Feed {target} answered HTTP {response.status}.")
                    raise FeedUnavailableException(target, status=response.status)
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Request for feed {target} failed: {e!r}")
            raise FeedUnavailableException(target) from e

        feed = AtomTranslator.to_feed(body, target)
        logger.debug(f"Fetched {len(feed.entries)} entries from {target}.")
        return feed
