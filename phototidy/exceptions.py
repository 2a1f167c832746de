"""
Custom exception hierarchy for phototidy.

Soft errors (``MetadataUnavailable``) only drive the timestamp fallback chain.
Per-file errors make the classifier skip that file and carry on. Only
``TraversalError`` aborts a run.
"""


class PhotoTidyError(Exception):
    """Base exception for all phototidy errors."""
    pass


class MetadataUnavailable(PhotoTidyError):
    """Raised when a metadata source cannot produce a timestamp."""
    pass


class TimeUnavailable(PhotoTidyError):
    """Raised when no source, not even the filesystem, yields a timestamp."""
    pass


class FileSkipped(PhotoTidyError):
    """Base for per-file failures that skip the file without aborting the run."""
    pass


class DirectoryCreateFailed(FileSkipped):
    """Raised when the YYYY-MM target directory cannot be created."""
    pass


class TargetExists(FileSkipped):
    """Raised when the destination path is already occupied at move time."""
    pass


class RenameConflict(FileSkipped):
    """Raised when the retroactive _001 rename target is already occupied."""
    pass


class FileOperationError(FileSkipped):
    """Raised when file copy/move operations fail."""
    pass


class TraversalError(PhotoTidyError):
    """Raised when the directory walk itself cannot proceed."""
    pass
