"""
Exceptions raised by heictojpeg.

Resolution and output-directory errors are fatal to a run; metadata errors are
caught per file by the converter and reported as failures.
"""


class HeicToJpegError(Exception):
    """Base class for all heictojpeg errors."""


class NotFoundError(HeicToJpegError):
    """The input path does not exist."""


class StatError(HeicToJpegError):
    """The input path exists but cannot be inspected or listed."""


class DirectoryCreateError(HeicToJpegError):
    """The output directory could not be created."""


class MetadataParseError(HeicToJpegError):
    """The source container is not parseable as HEIF/AVIF."""


class OutputCollisionError(HeicToJpegError):
    """Another source in the batch already claims the same output file."""
