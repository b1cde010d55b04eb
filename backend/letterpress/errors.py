"""
Error taxonomy for the letter generation pipeline.

Routers translate these into HTTP responses; the orchestrator decides which
ones are per-item (caught and logged) and which ones abort the whole order.
"""


class LetterpressError(Exception):
    """Base class for every error raised by the pipeline."""


class ValidationError(LetterpressError):
    """A required identifier (shop, order id, token) is missing."""


class NotFoundError(LetterpressError):
    """No order, no eligible line item, or no artifact for a token."""


class ArtifactMissingError(NotFoundError):
    """The artifact record exists but its file is gone from disk."""


class ExternalFetchError(LetterpressError):
    """Downloading a remote resource (customer image, order) failed."""


class RenderError(LetterpressError):
    """Headless browser rendering failed."""


class StorageError(LetterpressError):
    """Persisting an artifact to the storage backend failed."""


class PersistenceError(LetterpressError):
    """The template or artifact store is unreachable or rejected a write."""
