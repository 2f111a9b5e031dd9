"""
Utility functions for the audio relay bot
"""

import re
from urllib.parse import urlparse
from pathlib import Path
from typing import List, Optional

def format_file_size(size_bytes: int) -> str:
    """Format file size in human readable format"""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size = float(size_bytes)

    while size >= 1024.0 and i < len(size_names) - 1:
        size /= 1024.0
        i += 1

    if i == 0:
        return f"{int(size)} {size_names[i]}"
    else:
        return f"{size:.1f} {size_names[i]}"

def is_allowed_user(user_id: int, allowed_ids: List[int]) -> bool:
    """Check if user may submit jobs; an empty list allows everyone"""
    return not allowed_ids or user_id in allowed_ids

def is_valid_url(url: str) -> bool:
    """Check if URL is valid"""
    try:
        result = urlparse(url)
        return result.scheme in ('http', 'https') and bool(result.netloc)
    except ValueError:
        return False

def extract_urls_from_text(text: str) -> list:
    """Extract URLs from text"""
    url_pattern = re.compile(
        r'http[s]?://(?:[a-zA-Z]|[0-9]|[$-_@.&+]|[!*\\(\\),]|(?:%[0-9a-fA-F][0-9a-fA-F]))+'
    )
    return url_pattern.findall(text)

def first_url(text: Optional[str]) -> Optional[str]:
    """Return the first valid http(s) URL in a message, if any"""
    if not text:
        return None
    for url in extract_urls_from_text(text):
        if is_valid_url(url):
            return url
    return None

def get_mime_type_from_extension(filename: str) -> str:
    """Get MIME type for an audio file from its extension"""
    ext = Path(filename).suffix.lower()

    mime_types = {
        '.mp3': 'audio/mpeg',
        '.m4a': 'audio/mp4',
        '.aac': 'audio/aac',
        '.ogg': 'audio/ogg',
        '.opus': 'audio/ogg',
        '.wav': 'audio/wav',
        '.flac': 'audio/flac'
    }

    return mime_types.get(ext, 'application/octet-stream')

def truncate_text(text: str, max_length: int = 100) -> str:
    """Truncate text to specified length"""
    if len(text) <= max_length:
        return text
    return text[:max_length-3] + "..."
