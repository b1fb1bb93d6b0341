"""
Reel downloads through the RapidAPI "Instagram Reels Downloader" service.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class ReelDownloadError(Exception):
    """Custom exception for reel download errors."""
    def __init__(self, message: str, status_code: int = 500, details=None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ReelDownloader:
    """Client for the RapidAPI reels downloader."""

    def __init__(self, api_key: str, host: str, timeout: float = 30):
        self.api_key = api_key
        self.host = host
        self.timeout = timeout
        self.session = requests.Session()

    def fetch_reel(self, url: str) -> dict:
        """Ask the scraping API for a reel's download URL and metadata."""
        if not self.api_key:
            raise ReelDownloadError("RAPIDAPI_KEY is not configured", 500)

        logger.info("Fetching Instagram Reel data...")
        try:
            response = self.session.get(
                f"https://{self.host}/download",
                params={"url": url},
                headers={"x-rapidapi-key": self.api_key, "x-rapidapi-host": self.host},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise ReelDownloadError(f"Reel lookup failed: {e}", 502)
        except ValueError:
            raise ReelDownloadError("Reel lookup returned invalid JSON", 502)

        logger.debug(f"Reel API response: {data}")
        if not isinstance(data, dict) or not data.get("download_url"):
            raise ReelDownloadError("Could not fetch Instagram media", 404, details=data)
        return data

    def download(self, media_url: str, dest_path: str) -> int:
        """Stream the media file to dest_path. Returns the number of bytes written."""
        logger.info(f"Downloading video from: {media_url}")
        written = 0
        try:
            with self.session.get(media_url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(dest_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.exceptions.RequestException as e:
            raise ReelDownloadError(f"Failed to download media: {e}", 502)
        logger.info("Video downloaded successfully")
        return written

    @staticmethod
    def describe(data: dict, url: Optional[str] = None) -> dict:
        """Summary fields shown in the Discord message."""
        owner = data.get("owner") or {}
        return {
            "title": data.get("title") or data.get("caption") or "Instagram Reel",
            "username": owner.get("username") or data.get("username") or "Unknown",
            "likes": data.get("like_count") or data.get("likes") or "N/A",
            "views": data.get("view_count") or data.get("views") or "N/A",
            "url": url,
        }
