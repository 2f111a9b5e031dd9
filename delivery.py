"""
Delivery of extracted audio to Telegram, splitting files over the upload limit
"""

import os
import asyncio
import logging

from chunk_engine import needs_splitting, split_file, cleanup_chunks
from errors import ChunkingError
from models import TransferJob
from audio_sender import TelegramAudioSender
from utils import format_file_size

logger = logging.getLogger(__name__)

def part_title(title: str, index: int, total: int) -> str:
    """Add the part position to a title: "Song (Part 1/3)" """
    if total > 1:
        return f"{title} (Part {index}/{total})"
    return title

class DeliveryHandler:
    """
    Sends the file of a TransferJob as one or more sendAudio uploads.

    The handler owns the job's source file and removes it once every part
    has been dispatched. Outcomes are only reported through logging.
    """

    def __init__(self, sender: TelegramAudioSender):
        self.sender = sender

    async def deliver(self, job: TransferJob):
        """Send the job's file, splitting it first when it exceeds the upload limit"""
        try:
            file_size = os.path.getsize(job.source_path)
        except OSError as e:
            logger.error(f"[{job.job_id}] Failed to get file metadata for {job.source_path}: {e}")
            return

        file_name = os.path.basename(job.source_path)

        if not needs_splitting(file_size):
            await self._send_whole(job)
            return

        logger.info(f"[{job.job_id}] File {file_name} is {format_file_size(file_size)}, splitting into chunks")

        try:
            chunks = await asyncio.to_thread(split_file, job.source_path)
        except ChunkingError as e:
            logger.error(f"[{job.job_id}] Failed to split file {file_name}: {e}")
            if e.partial_chunks:
                logger.info(f"[{job.job_id}] Removing {len(e.partial_chunks)} partial chunk(s) of {file_name}")
                failed = await asyncio.to_thread(cleanup_chunks, e.partial_chunks)
                if failed:
                    logger.warning(f"[{job.job_id}] Partial chunks left on disk: {', '.join(failed)}")
            # Usually rejected again by the upload limit; the rejection is logged like any other
            await self._send_whole(job)
            return

        if not chunks:
            logger.warning(f"[{job.job_id}] {file_name} no longer needs splitting, sending as-is")
            await self._send_whole(job)
            return

        total = len(chunks)
        sent = 0
        for chunk in chunks:
            logger.info(
                f"[{job.job_id}] Sending chunk {chunk.sequence_number}/{total}: "
                f"{os.path.basename(chunk.path)} ({format_file_size(chunk.byte_length)})"
            )
            ok = await self.sender.send_audio(
                job.chat_id,
                chunk.path,
                job.performer,
                part_title(job.title, chunk.sequence_number, total),
                job.bot_token,
                should_delete=False,
            )
            if ok:
                sent += 1
            else:
                logger.error(f"[{job.job_id}] Part {chunk.sequence_number}/{total} of {file_name} was not delivered")

        logger.info(f"[{job.job_id}] Delivered {sent}/{total} parts of {file_name}")

        failed = await asyncio.to_thread(cleanup_chunks, chunks)
        if failed:
            logger.warning(f"[{job.job_id}] {len(failed)} chunk file(s) of {file_name} were left on disk")

        try:
            os.remove(job.source_path)
            logger.info(f"[{job.job_id}] Deleted file: {job.source_path}")
        except OSError as e:
            logger.warning(f"[{job.job_id}] Failed to delete source file {job.source_path}: {e}")

    async def _send_whole(self, job: TransferJob) -> bool:
        """Send the unsplit source; it is removed only if Telegram accepted it"""
        return await self.sender.send_audio(
            job.chat_id,
            job.source_path,
            job.performer,
            job.title,
            job.bot_token,
            should_delete=True,
        )
