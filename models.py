"""
Value types passed between the extractor, chunk engine and delivery handler
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChunkDescriptor:
    """One byte range of a source file, written as its own file"""
    path: str
    sequence_number: int
    byte_length: int


@dataclass
class TransferJob:
    """A single delivery request; lives only as long as its background task"""
    source_path: str
    title: str
    performer: str
    chat_id: int
    bot_token: str
    job_id: str = ""


@dataclass
class ExtractedAudio:
    path: str
    title: str
    performer: str = ""
