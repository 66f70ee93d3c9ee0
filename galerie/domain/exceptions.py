class GalerieException(Exception):
    """Base exception for all release-tracking errors."""
    pass

class FeedUnavailableException(GalerieException):
    """Raised when a release feed cannot be fetched (transport error or non-2xx status)."""
    def __init__(self, url: str, status: int = None, message: str = "Release feed unavailable."):
        self.url = url
        self.status = status
        detail = f" HTTP {status}." if status is not None else ""
        super().__init__(f"{message}{detail} URL: {url}")

class FeedParseException(GalerieException):
    """Raised when a release feed body is not a well-formed Atom document."""
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Could not parse release feed {url}: {reason}")

class NoBaselineException(GalerieException):
    """Raised when an installed package declares no version to compare against."""
    def __init__(self, plugin_key: str):
        self.plugin_key = plugin_key
        super().__init__(f"Installed package {plugin_key!r} has no declared version.")

class RepositoryNotFoundException(GalerieException):
    """Raised when no catalog repository matches a slug."""
    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"No repository registered for slug {slug!r}.")

class CatalogUnreadableException(GalerieException):
    """Raised when the repositories catalog is missing or malformed."""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Repositories catalog {path} is unreadable: {reason}")

class DatabaseException(GalerieException):
    """Raised when a host store operation fails."""
    pass
