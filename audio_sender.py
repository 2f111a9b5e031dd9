"""
Upload of audio files to the Telegram Bot API sendAudio method
"""

import os
import asyncio
import logging
from typing import Optional

import aiohttp

from errors import SendError, TransportError, EndpointRejectedError
from utils import format_file_size, get_mime_type_from_extension, truncate_text

logger = logging.getLogger(__name__)

class TelegramAudioSender:
    """
    Sends a single file per call as a multipart upload.

    Deleting the file after a successful upload is decided by the caller
    through ``should_delete``.
    """

    def __init__(self, api_base: str = 'https://api.telegram.org', timeout: int = 300):
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self.session

    async def send_audio(self, chat_id: int, file_path: str, performer: str, title: str,
                         bot_token: str, should_delete: bool) -> bool:
        """
        Send one audio file to a chat.

        Args:
            chat_id: Destination Telegram chat ID
            file_path: Path to the audio file
            performer: Attribution string, may be empty
            title: Track title shown by Telegram
            bot_token: Bot API token used for the request
            should_delete: Remove file_path after a successful upload

        Returns:
            bool: True if Telegram accepted the upload
        """
        file_name = os.path.basename(file_path) or 'audio.mp3'

        try:
            audio_file = open(file_path, 'rb')
        except OSError as e:
            logger.error(f"Failed to open file {file_path}: {e}")
            return False

        try:
            with audio_file:
                file_size = os.fstat(audio_file.fileno()).st_size
                logger.info(f"Sending {file_name} ({format_file_size(file_size)}) to chat {chat_id}")
                await self._post_audio(chat_id, audio_file, file_name, performer, title, bot_token)
        except EndpointRejectedError as e:
            logger.error(f"Telegram API error {e.status} for {file_name}: {truncate_text(e.body, 500)}")
            return False
        except SendError as e:
            logger.error(f"Failed to send audio {file_name}: {e}")
            return False

        logger.info(f"Audio sent successfully to Telegram: {file_name}")

        if should_delete:
            try:
                os.remove(file_path)
                logger.info(f"Deleted file: {file_path}")
            except OSError as e:
                logger.warning(f"Failed to delete sent file {file_path}: {e}")

        return True

    async def _post_audio(self, chat_id: int, audio_file, file_name: str, performer: str,
                          title: str, bot_token: str) -> None:
        """POST the multipart form, raising TransportError or EndpointRejectedError"""
        url = f"{self.api_base}/bot{bot_token}/sendAudio"

        form = aiohttp.FormData()
        form.add_field('chat_id', str(chat_id))
        form.add_field('performer', performer)
        form.add_field('title', title)
        form.add_field(
            'audio',
            audio_file,
            filename=file_name,
            content_type=get_mime_type_from_extension(file_name)
        )

        session = await self.get_session()
        try:
            async with session.post(url, data=form) as response:
                if 200 <= response.status < 300:
                    return
                try:
                    body = await response.text()
                except (aiohttp.ClientError, UnicodeDecodeError):
                    body = "Unknown error"
                raise EndpointRejectedError(response.status, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            # Client error messages can embed the request URL and with it the token
            message = str(e)
            if bot_token:
                message = message.replace(bot_token, '***')
            message = message or type(e).__name__
            raise TransportError(message) from e

    async def close(self):
        """Close the HTTP session"""
        if self.session and not self.session.closed:
            await self.session.close()
