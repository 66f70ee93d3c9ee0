import asyncio
from pathlib import Path
from typing import Protocol, Union

# Catalog shipped with the package, found regardless of the working directory.
DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "assets" / "galerie.min.json"


class CatalogSource(Protocol):
    """Anything able to hand back the raw bytes stored at a path."""

    async def read_bytes(self, path: str) -> bytes:
        ...


class FileCatalogSource:
    """
    Reads catalog documents from the local filesystem, relative to a base directory.
    Absolute paths are read as they are. Missing files surface as ``OSError``;
    the registry decides how to degrade.
    """

    def __init__(self, base_dir: Union[str, Path] = "."):
        self.base_dir = Path(base_dir)

    async def read_bytes(self, path: str) -> bytes:
        return await asyncio.to_thread((self.base_dir / path).read_bytes)
