import asyncio
import os
import sys
import logging
from dotenv import load_dotenv

from galerie.infrastructure.catalog import DEFAULT_CATALOG_PATH, FileCatalogSource
from galerie.infrastructure.database import PostgresHostStore
from galerie.infrastructure.feed_client import AtomFeedClient, DEFAULT_TIMEOUT_SECONDS
from galerie.application.registry import RepositoryRegistry
from galerie.application.update_service import UpdateService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def _env_number(name: str, default, cast):
    """Reads a numeric setting, exiting like the other configuration errors when it is malformed."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.error(f"{name} must be a number, got {raw!r}.")
        sys.exit(1)
    if value <= 0:
        logger.error(f"{name} must be positive, got {raw!r}.")
        sys.exit(1)
    return value


async def main():
    # Load environment variables from .env file
    load_dotenv()

    db_url = os.getenv("DATABASE_URL")
    catalog_path = os.getenv("GALERIE_CATALOG_PATH", str(DEFAULT_CATALOG_PATH))
    feed_timeout = _env_number("GALERIE_FEED_TIMEOUT", DEFAULT_TIMEOUT_SECONDS, float)
    max_fetches = _env_number("GALERIE_MAX_CONCURRENT_FETCHES", 1, int)

    if not db_url:
        logger.error("DATABASE_URL is not set in the environment.")
        sys.exit(1)

    host = PostgresHostStore(db_url=db_url)
    registry = RepositoryRegistry(source=FileCatalogSource(), catalog_path=catalog_path)

    update_service = UpdateService(
        feed_client=AtomFeedClient(timeout=feed_timeout),
        registry=registry,
        host=host,
        max_concurrent_fetches=max_fetches,
    )

    try:
        transient = await host.load_update_transient()
        # Running from the command line stands in for the host's upstream update check.
        await update_service.run_cycle(transient, triggered=True)
    except KeyboardInterrupt:
        logger.info("Update check interrupted by user. Exiting gracefully.")
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)
    finally:
        await host.engine.dispose()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
