"""Error taxonomy for stable module boundaries."""


class CrawlerError(Exception):
    """Base exception for collection-crawler."""


class ConfigError(CrawlerError):
    """Raised when configuration is invalid or missing."""


class BrowserError(CrawlerError):
    """Raised for browser/session management failures."""


class TransientNetworkError(BrowserError):
    """Raised when navigation or a page wait fails or times out."""


class FatalSessionError(BrowserError):
    """Raised when the session is not usable (closed, logged out, blocked)."""


class ExtractionError(CrawlerError):
    """Raised when rendered content does not match the expected shape."""


class DiscoveryError(CrawlerError):
    """Raised when the collection listing could not be enumerated."""


class CheckpointError(CrawlerError):
    """Raised when a checkpoint cannot be written or read back."""


class DiagnosticsError(CrawlerError):
    """Raised for crawl event log failures."""
