"""
Domain exceptions raised by the service layer.

Routers translate these into HTTP responses; nothing below the API layer
knows about status codes.
"""


class ShortyError(Exception):
    """Base class for all application errors"""


class ShortCodeGenerationError(ShortyError):
    """The randomness source could not produce a short code"""


class StorageError(ShortyError):
    """A read or write against the URL store failed"""


class DatabaseUnavailableError(ShortyError):
    """The database could not be reached during startup"""
