"""
Exceptions raised while splitting, extracting and sending audio
"""

from typing import List, Optional


class ChunkingError(Exception):
    """
    Base class for failures while splitting a source file.

    ``partial_chunks`` lists the chunk files this attempt had already
    created when it failed; they are left on disk for the caller.
    """

    def __init__(self, message: str, partial_chunks: Optional[List] = None):
        super().__init__(message)
        self.partial_chunks = list(partial_chunks or [])


class SourceNotFoundError(ChunkingError):
    """The source file does not exist"""


class ChunkIOError(ChunkingError):
    """Reading the source or writing a chunk failed"""


class SendError(Exception):
    """Base class for failures while uploading a file to Telegram"""


class TransportError(SendError):
    """The upload request could not be completed"""


class EndpointRejectedError(SendError):
    """Telegram answered the upload with a non-success status"""

    def __init__(self, status: int, body: Optional[str] = None):
        self.status = status
        self.body = body or ""
        super().__init__(f"Telegram API error {status}: {self.body}")


class ExtractionError(Exception):
    """The extraction tool failed or produced unusable output"""
