"""Error taxonomy for a changelist sync run.

Every fatal error derives from ``ChangelistSyncError`` so the CLI boundary
can catch one type, log it and mark the run failed.  ``NotFoundWarning`` is
not raised; it is recorded on the run report and logged at WARNING level.
"""


class ChangelistSyncError(Exception):
    """Base class for fatal errors during a sync run."""


class ConfigurationError(ChangelistSyncError, ValueError):
    """Required credentials or identifiers are missing or invalid."""


class RemoteError(ChangelistSyncError):
    """A call to the content repository failed.

    Attributes:
        status_code: HTTP status code, or ``None`` for transport failures.
        url: The request URL that failed.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class MalformedEntryError(ChangelistSyncError, ValueError):
    """An override entry has no usable identifier.

    Attributes:
        index: Position of the offending entry in the override sequence.
    """

    def __init__(self, message: str, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


class PersistenceError(ChangelistSyncError, OSError):
    """Writing a document to the sink failed."""


class NotFoundWarning(UserWarning):
    """A changelist identifier was supplied but matched nothing."""
