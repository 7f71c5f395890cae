"""Error taxonomy shared by the record store and the services built on it."""


class RecordStoreError(Exception):
    """Base class for record store errors."""


class ValidationError(RecordStoreError, ValueError):
    """Missing or malformed identifying data (target type/id, slug, ...)."""


class NotFoundError(RecordStoreError, LookupError):
    """A requested record does not exist."""


class PersistError(RecordStoreError):
    """The underlying store reported a failed write."""
