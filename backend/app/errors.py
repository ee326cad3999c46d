"""
Error taxonomy for the persistence layer.

Only ConfigInvalidError ever reaches a caller of the sync layer; the other two
are raised internally and degraded to "use the other tier" or "no-op".
"""


class ConfigInvalidError(ValueError):
    """Remote configuration is malformed (empty value or unparseable URL)."""


class RemoteUnreachableError(Exception):
    """The remote store could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SerializationError(Exception):
    """A local snapshot could not be decoded or validated."""
