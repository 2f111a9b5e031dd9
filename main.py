#!/usr/bin/env python3
"""
Telegram bot that extracts audio from media URLs and sends it back to the chat
"""

import logging
import asyncio
import signal
import uuid
from telegram import Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters, ContextTypes
from telegram.constants import ParseMode

from config import (
    BOT_TOKEN, ALLOWED_USER_IDS, WEBHOOK_URL, WEBHOOK_SECRET, WEBHOOK_LISTEN, WEBHOOK_PORT,
    WEBHOOK_PATH, DOWNLOAD_DIR, YTDLP_BINARY, AUDIO_FORMAT, TELEGRAM_API_BASE, SEND_TIMEOUT,
    LOG_LEVEL,
)
from audio_sender import TelegramAudioSender
from delivery import DeliveryHandler
from errors import ExtractionError
from extractor import AudioExtractor
from models import TransferJob
from utils import first_url, is_allowed_user

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL, logging.INFO)
)
# httpx logs every Bot API request URL, token included
logging.getLogger('httpx').setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

# New text messages only; edits and channel posts are ignored
URL_MESSAGE_FILTER = filters.TEXT & ~filters.COMMAND & filters.UpdateType.MESSAGE

class AudioRelayBot:
    def __init__(self, bot_token: str = BOT_TOKEN):
        self.bot_token = bot_token
        self.sender = TelegramAudioSender(api_base=TELEGRAM_API_BASE, timeout=SEND_TIMEOUT)
        self.delivery = DeliveryHandler(self.sender)
        self.extractor = AudioExtractor(
            download_dir=DOWNLOAD_DIR,
            binary=YTDLP_BINARY,
            audio_format=AUDIO_FORMAT
        )

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command"""
        message = update.effective_message
        user = update.effective_user
        if message is None:
            return
        name = user.first_name if user else "there"

        welcome_text = f"""
🎵 **Audio Relay Bot**

Hi {name}! Send me a link to a video or track and I'll send back its audio.

📋 **How it works:**
• Send any media URL
• Files over 50 MB arrive in several parts, titled "(Part 1/N)"
        """

        await message.reply_text(welcome_text, parse_mode=ParseMode.MARKDOWN)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command"""
        await self.start_command(update, context)

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Accept a media URL and start its delivery in the background"""
        message = update.message
        user = update.effective_user
        if message is None or user is None:
            return
        chat_id = update.effective_chat.id

        if not is_allowed_user(user.id, ALLOWED_USER_IDS):
            logger.warning(f"Rejected message from user {user.id}")
            await message.reply_text("❌ You are not allowed to use this bot.")
            return

        url = first_url(message.text)
        if not url:
            await message.reply_text(
                "❌ Please send a valid URL starting with http:// or https://\n\n"
                "Example: https://www.youtube.com/watch?v=dQw4w9WgXcQ"
            )
            return

        job_id = uuid.uuid4().hex[:8]
        logger.info(f"[{job_id}] User {user.id} requested {url}")

        await message.reply_text(f"⏳ Job {job_id} accepted, extracting audio...")

        context.application.create_task(
            self.process_job(url, chat_id, job_id),
            update=update,
            name=f"job-{job_id}"
        )

    async def process_job(self, url: str, chat_id: int, job_id: str):
        """Extract audio from url and deliver it to chat_id; outcomes are only logged"""
        try:
            extracted = await self.extractor.extract(url, job_id)
            logger.info(f"[{job_id}] Download complete: {extracted.path}")

            job = TransferJob(
                source_path=extracted.path,
                title=extracted.title,
                performer=extracted.performer,
                chat_id=chat_id,
                bot_token=self.bot_token,
                job_id=job_id,
            )
            await self.delivery.deliver(job)
        except ExtractionError as e:
            logger.error(f"[{job_id}] Extraction failed for {url}: {e}")
        except Exception:
            logger.exception(f"[{job_id}] Unexpected error while processing {url}")

    async def cleanup(self):
        """Clean up resources"""
        await self.sender.close()

async def main():
    """Main function to run the bot"""
    bot = AudioRelayBot()

    # Create application
    application = Application.builder().token(BOT_TOKEN).build()

    # Add handlers
    application.add_handler(CommandHandler("start", bot.start_command))
    application.add_handler(CommandHandler("help", bot.help_command))
    application.add_handler(MessageHandler(URL_MESSAGE_FILTER, bot.handle_message))

    # Start bot
    await application.initialize()
    await application.start()
    if WEBHOOK_URL:
        logger.info(f"Starting webhook on {WEBHOOK_LISTEN}:{WEBHOOK_PORT}/{WEBHOOK_PATH}")
        await application.updater.start_webhook(
            listen=WEBHOOK_LISTEN,
            port=WEBHOOK_PORT,
            url_path=WEBHOOK_PATH,
            webhook_url=f"{WEBHOOK_URL.rstrip('/')}/{WEBHOOK_PATH}",
            secret_token=WEBHOOK_SECRET or None,
            allowed_updates=Update.ALL_TYPES
        )
    else:
        logger.info("Starting Telegram bot with long polling...")
        await application.updater.start_polling(allowed_updates=Update.ALL_TYPES)

    try:
        # Keep the bot running
        stop = asyncio.Event()

        def signal_handler(signum, frame):
            logger.info("Received stop signal")
            stop.set()

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

        await stop.wait()
    finally:
        logger.info("Shutting down...")
        await application.updater.stop()
        await application.stop()
        await application.shutdown()
        await bot.cleanup()

def run_bot():
    """Run the bot"""
    asyncio.run(main())

if __name__ == '__main__':
    run_bot()
