"""
Splitting of audio files that exceed the Bot API upload limit
"""

import os
import re
import logging
from pathlib import Path
from typing import List, Iterable

from errors import SourceNotFoundError, ChunkIOError
from models import ChunkDescriptor
from utils import format_file_size

logger = logging.getLogger(__name__)

# Telegram Bot API rejects uploads above 50MB
THRESHOLD = 50 * 1024 * 1024
# Kept below THRESHOLD to leave room for multipart overhead
CHUNK_CAP = 49 * 1024 * 1024

_CHUNK_PREFIX = re.compile(r'^\d+_')


def needs_splitting(size_in_bytes: int) -> bool:
    """Check if a file of this size has to be split before upload"""
    return size_in_bytes > THRESHOLD


def chunk_filename(source_path: str, sequence_number: int) -> str:
    """Name of chunk ``sequence_number`` of ``source_path``, e.g. ``2_song.mp3``"""
    path = Path(source_path)
    stem = path.stem or 'audio'
    extension = path.suffix.lstrip('.') or 'mp3'
    return f"{sequence_number}_{stem}.{extension}"


def extract_original_name(chunk_name: str) -> str:
    """
    Recover the source filename from a chunk filename.

    "1_artist - title.mp3" -> "artist - title.mp3". Names without a leading
    "<digits>_" prefix are returned unchanged.
    """
    return _CHUNK_PREFIX.sub('', chunk_name, count=1)


def split_file(source_path: str) -> List[ChunkDescriptor]:
    """
    Split a file into CHUNK_CAP sized sibling files.

    Args:
        source_path: Path to the audio file to split

    Returns:
        Chunk descriptors in sequence order, or an empty list when the
        file is small enough to be sent as-is

    Raises:
        SourceNotFoundError: If source_path does not exist
        ChunkIOError: If reading the source or writing a chunk fails.
            Chunk files created before the failure are left on disk and
            listed in the exception's partial_chunks.
    """
    if not os.path.exists(source_path):
        raise SourceNotFoundError(f"File not found: {source_path}")

    try:
        total_size = os.path.getsize(source_path)
    except OSError as e:
        raise ChunkIOError(f"Cannot stat {source_path}: {e}") from e

    if not needs_splitting(total_size):
        return []

    parent_dir = os.path.dirname(source_path)
    chunks = []
    sequence_number = 1
    bytes_read = 0
    # Chunk file opened but not yet fully written
    pending = None

    try:
        with open(source_path, 'rb') as infile:
            while bytes_read < total_size:
                data = infile.read(min(CHUNK_CAP, total_size - bytes_read))
                if not data:
                    logger.warning(
                        f"{source_path} ended after {bytes_read} of {total_size} bytes"
                    )
                    break

                chunk_path = os.path.join(parent_dir, chunk_filename(source_path, sequence_number))
                with open(chunk_path, 'wb') as chunk_file:
                    pending = ChunkDescriptor(path=chunk_path, sequence_number=sequence_number, byte_length=0)
                    chunk_file.write(data)
                    chunk_file.flush()
                    os.fsync(chunk_file.fileno())

                chunks.append(ChunkDescriptor(
                    path=chunk_path,
                    sequence_number=sequence_number,
                    byte_length=len(data),
                ))
                pending = None
                bytes_read += len(data)
                sequence_number += 1
    except OSError as e:
        leftovers = chunks + ([pending] if pending else [])
        raise ChunkIOError(f"Error splitting {source_path}: {e}", partial_chunks=leftovers) from e

    logger.info(
        f"Split {os.path.basename(source_path)} ({format_file_size(total_size)}) "
        f"into {len(chunks)} chunks"
    )
    return chunks


def cleanup_chunks(chunks: Iterable[ChunkDescriptor]) -> List[str]:
    """
    Delete chunk files, continuing past individual failures.

    Returns:
        Paths that could not be removed
    """
    failed = []
    for chunk in chunks:
        try:
            os.remove(chunk.path)
            logger.debug(f"Removed chunk: {chunk.path}")
        except FileNotFoundError:
            logger.debug(f"Chunk already gone: {chunk.path}")
        except OSError as e:
            logger.warning(f"Failed to remove chunk {chunk.path}: {e}")
            failed.append(chunk.path)
    return failed
