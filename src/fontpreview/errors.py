"""Exceptions raised by storage backends and font sources."""


class FontPreviewError(Exception):
    """Base exception for all fontpreview errors."""


class StorageError(FontPreviewError):
    """A storage operation failed for a reason other than a missing font."""


class FontNotFoundError(StorageError, FileNotFoundError):
    """The requested font does not exist in the backend."""

    def __init__(self, name: str):
        super().__init__(f"Font not found: {name}")
        self.name = name


class MalformedUploadError(StorageError, ValueError):
    """Upload rejected at the boundary (bad name, extension or payload)."""


class SourceUnavailableError(FontPreviewError):
    """A listing or download from a font source failed."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
