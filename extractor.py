"""
Audio extraction from media URLs with yt-dlp
"""

import os
import json
import asyncio
import logging
from typing import List

from errors import ExtractionError
from models import ExtractedAudio
from utils import truncate_text

logger = logging.getLogger(__name__)

# Printed once the converted file is in its final location
PRINT_TEMPLATE = 'after_move:%(.{filepath,title,uploader,artist})j'

class AudioExtractor:
    def __init__(self, download_dir: str = 'downloads', binary: str = 'yt-dlp', audio_format: str = 'mp3'):
        self.download_dir = download_dir
        self.binary = binary
        self.audio_format = audio_format

    def build_command(self, url: str, job_id: str) -> List[str]:
        """Command line for extracting the audio track of one URL"""
        # The job id keeps concurrent jobs for the same URL apart
        output_template = os.path.join(self.download_dir, f"%(title).120B [{job_id}].%(ext)s")
        return [
            self.binary,
            '-x',
            '--audio-format', self.audio_format,
            '--no-playlist',
            '-o', output_template,
            '--print', PRINT_TEMPLATE,
            url,
        ]

    async def extract(self, url: str, job_id: str) -> ExtractedAudio:
        """
        Download a URL and convert it to audio.

        Returns:
            ExtractedAudio with the produced file path and its metadata

        Raises:
            ExtractionError: If yt-dlp cannot be started, exits with an
                error, or does not report the produced file
        """
        os.makedirs(self.download_dir, exist_ok=True)
        command = self.build_command(url, job_id)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExtractionError(f"Failed to spawn {self.binary}: {e}") from e

        stdout, stderr = await process.communicate()

        if process.returncode != 0:
            error_text = stderr.decode('utf-8', errors='replace').strip()
            raise ExtractionError(
                f"{self.binary} exited with status {process.returncode}: {truncate_text(error_text, 500)}"
            )

        return self._parse_output(stdout.decode('utf-8', errors='replace'))

    def _parse_output(self, output: str) -> ExtractedAudio:
        lines = [line for line in output.splitlines() if line.strip()]
        if not lines:
            raise ExtractionError("Extraction finished without reporting a file")

        try:
            info = json.loads(lines[-1])
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Unreadable extraction output: {truncate_text(lines[-1])}") from e

        file_path = info.get('filepath') if isinstance(info, dict) else None
        if not file_path:
            raise ExtractionError("Extraction output has no file path")

        title = info.get('title') or os.path.splitext(os.path.basename(file_path))[0]
        performer = info.get('artist') or info.get('uploader') or ''

        logger.info(f"Extracted audio: {os.path.basename(file_path)}")
        return ExtractedAudio(path=file_path, title=title, performer=performer)
