"""Exception types raised by archiveops"""


class ArchiveOpsError(Exception):
    """Base class for all archiveops errors."""


class ConfigurationError(ArchiveOpsError, ValueError):
    """A required configuration field is missing or malformed."""


class ClientInitError(ArchiveOpsError):
    """An authenticated AWS client could not be constructed."""


class SendError(ArchiveOpsError):
    """Sending an alert email to a single recipient failed."""


class UploadError(ArchiveOpsError):
    """Saving an object to the storage backend failed."""
