# src/codefusion_reviewer/errors.py


class ReviewerError(Exception):
    """Base class for all errors raised by the reviewer."""


class FormatError(ReviewerError, ValueError):
    """
    Raised by the diff parser when a chunk header is malformed.

    Only the file being parsed is affected; callers may skip it and continue
    with the rest of the pull request.
    """

    def __init__(self, text: str, filename: str = ""):
        self.text = text
        self.filename = filename
        location = f" in {filename}" if filename else ""
        super().__init__(f"Invalid chunk header{location}: {text!r}")


class ReviewSourceError(ReviewerError):
    """The diff provider or pull-request store could not supply its data."""


class SourceNotFoundError(ReviewSourceError):
    """Pull request, repository, local path or branch does not exist."""


class SourceUnavailableError(ReviewSourceError):
    """The diff provider or pull-request store could not be reached."""
