"""
Configuration management for videoWiper.
Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if it exists
env_path = Path(__file__).parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

PLACEHOLDER_TOKEN = 'your_bot_token_here'


class Config:
    """Base configuration."""

    # Server settings
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', 3000))
    DEBUG = os.environ.get('DEBUG', 'false').lower() == 'true'
    API_DOMAIN = os.environ.get('API_DOMAIN', '')

    # Discord bot
    DISCORD_TOKEN = os.environ.get('DISCORD_TOKEN', '')
    GUILD_ID = os.environ.get('GUILD_ID', '')
    CHANNEL_ID = os.environ.get('CHANNEL_ID', '')
    DISCORD_SEND_TIMEOUT = float(os.environ.get('DISCORD_SEND_TIMEOUT', 120))

    # RapidAPI reel downloader
    RAPIDAPI_KEY = os.environ.get('RAPIDAPI_KEY', '')
    RAPIDAPI_HOST = os.environ.get('RAPIDAPI_HOST', 'instagram-reels-downloader-api.p.rapidapi.com')

    # Instagram credentials (OPTIONAL, used by the authenticated strategies and stories)
    IG_COOKIE = os.environ.get('IG_COOKIE', '')
    IG_BEARER_TOKEN = os.environ.get('IG_BEARER_TOKEN', '')
    REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', 30))

    # Uploads
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', './uploads')
    MAX_UPLOAD_MB = int(os.environ.get('MAX_UPLOAD_MB', 25))
    MAX_UPLOAD_FILES = int(os.environ.get('MAX_UPLOAD_FILES', 10))
    # Whole multipart body; the per-file limit is checked after saving
    MAX_CONTENT_LENGTH = (MAX_UPLOAD_FILES * MAX_UPLOAD_MB + 1) * 1024 * 1024

    VIDEO_EXTENSIONS = {'mp4', 'avi', 'mov', 'mkv', 'wmv', 'flv', 'webm', 'm4v', '3gp'}
    IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'bmp', 'webp', 'svg', 'tiff'}

    @classmethod
    def validate(cls) -> bool:
        """Check if a usable Discord bot token is set."""
        return bool(cls.DISCORD_TOKEN) and cls.DISCORD_TOKEN != PLACEHOLDER_TOKEN

    @classmethod
    def print_config(cls):
        """Print current configuration (for debugging)."""
        print("=" * 50)
        print("Current Configuration:")
        print("=" * 50)
        print(f"  HOST: {cls.HOST}")
        print(f"  PORT: {cls.PORT}")
        print(f"  DEBUG: {cls.DEBUG}")
        print(f"  DISCORD_TOKEN: {'***' + cls.DISCORD_TOKEN[-6:] if cls.validate() else 'NOT SET'}")
        print(f"  GUILD_ID: {cls.GUILD_ID or 'NOT SET'}")
        print(f"  CHANNEL_ID: {cls.CHANNEL_ID or 'NOT SET'}")
        print(f"  RAPIDAPI_KEY: {'SET' if cls.RAPIDAPI_KEY else 'NOT SET'}")
        print(f"  IG_COOKIE: {'SET' if cls.IG_COOKIE else 'NOT SET'}")
        print(f"  UPLOAD_FOLDER: {cls.UPLOAD_FOLDER}")
        print("=" * 50)


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    DISCORD_TOKEN = ''
    GUILD_ID = ''
    CHANNEL_ID = ''


# Configuration mapping
config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': Config
}


def get_config(env: Optional[str] = None) -> Config:
    """Get configuration based on environment."""
    if env is None:
        env = os.environ.get('FLASK_ENV', 'default')
    return config_map.get(env, Config)
