"""
Configuration settings for the audio relay bot
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Bot configuration
BOT_TOKEN = os.getenv('BOT_TOKEN')
if not BOT_TOKEN:
    print("⚠️  BOT_TOKEN environment variable is required")
    print("Please add your Telegram bot token to continue.")
    print("Get your token from @BotFather on Telegram")
    exit(1)

# Allowed user IDs (comma-separated string in environment variable, empty = everyone)
ALLOWED_USER_IDS_STR = os.getenv('ALLOWED_USER_IDS', '')
ALLOWED_USER_IDS = []
if ALLOWED_USER_IDS_STR:
    try:
        ALLOWED_USER_IDS = [int(user_id.strip()) for user_id in ALLOWED_USER_IDS_STR.split(',') if user_id.strip()]
    except ValueError:
        print("Warning: Invalid ALLOWED_USER_IDS format. Should be comma-separated integers.")

# Webhook settings (polling is used when WEBHOOK_URL is empty)
WEBHOOK_URL = os.getenv('WEBHOOK_URL', '')
WEBHOOK_SECRET = os.getenv('WEBHOOK_SECRET', '')
WEBHOOK_LISTEN = os.getenv('WEBHOOK_LISTEN', '0.0.0.0')
WEBHOOK_PORT = int(os.getenv('WEBHOOK_PORT', '3000'))
WEBHOOK_PATH = os.getenv('WEBHOOK_PATH', 'webhook')

# Extraction settings
DOWNLOAD_DIR = os.getenv('DOWNLOAD_DIR', 'downloads')
YTDLP_BINARY = os.getenv('YTDLP_BINARY', 'yt-dlp')
AUDIO_FORMAT = os.getenv('AUDIO_FORMAT', 'mp3')

# Upload settings
TELEGRAM_API_BASE = os.getenv('TELEGRAM_API_BASE', 'https://api.telegram.org')
SEND_TIMEOUT = int(os.getenv('SEND_TIMEOUT', '300'))  # 5 minutes per upload

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
