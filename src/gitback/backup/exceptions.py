"""Backup exceptions.

Fatal errors end the whole run. Per-item errors (``ExportError`` and its
subclasses) become a Failed outcome for one item and never stop siblings.
"""


class BackupError(Exception):
    """Base exception for backup errors."""

    pass


class UsernameResolutionError(BackupError):
    """Raised when the acting username cannot be determined (fatal)."""

    pass


class ListingError(BackupError):
    """Raised when a repository or gist listing fails (fatal)."""

    pass


class OutputDirectoryError(BackupError):
    """Raised when an output directory cannot be created (fatal)."""

    pass


class ExportError(BackupError):
    """Raised when a single item cannot be exported."""

    def __init__(self, item: str, reason: str) -> None:
        super().__init__(f"{item}: {reason}")
        self.item = item
        self.reason = reason


class CloneError(ExportError):
    """Raised when a mirror clone fails or the descriptor is unusable."""

    pass


class UpdateError(ExportError):
    """Raised when updating an existing mirror fails."""

    pass


class WriteError(ExportError):
    """Raised when gist metadata or its directory cannot be written."""

    pass


class ContentFetchError(ExportError):
    """Raised when raw gist file content cannot be downloaded."""

    pass
