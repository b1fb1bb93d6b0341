"""
Pytest fixtures for videoWiper tests.
"""

import os
from unittest.mock import patch

import pytest

import app as app_module
from discord_relay import RelayError


# ─── Fake Discord relay ──────────────────────────────────────

class FakeRelay:
    """Stands in for DiscordRelay; records every message instead of sending it."""

    def __init__(self):
        self.sent = []
        self.channels = {"555": "media"}
        self.guilds = [{"id": "1", "name": "Test Guild", "icon": None}]

    def list_guilds(self):
        return self.guilds

    def list_channels(self, guild_id):
        if guild_id != "1":
            raise RelayError("Guild not found", 404)
        return [{"id": "555", "name": "media", "type": "text"}]

    def get_channel_name(self, channel_id):
        if str(channel_id) not in self.channels:
            raise RelayError("Channel not found", 404)
        return self.channels[str(channel_id)]

    def send(self, channel_id, content=None, embed=None, files=None):
        files = list(files or [])
        self.sent.append({
            "channel_id": channel_id,
            "content": content,
            "embed": embed,
            "files": files,
            "files_existed": [os.path.exists(path) for path, _ in files],
        })
        return str(len(self.sent))


@pytest.fixture
def fake_relay():
    return FakeRelay()


@pytest.fixture
def client(fake_relay, tmp_path, monkeypatch):
    """Flask test client with the relay faked and a clean channel config."""
    monkeypatch.setitem(app_module.app.config, "TESTING", True)
    monkeypatch.setitem(app_module.app.config, "UPLOAD_FOLDER", str(tmp_path / "uploads"))
    app_module.set_channel_config("", "")
    with patch.object(app_module, "get_relay", return_value=fake_relay):
        with app_module.app.test_client() as test_client:
            yield test_client
    app_module.set_channel_config("", "")


@pytest.fixture
def configured_client(client):
    app_module.set_channel_config("1", "555")
    return client


# ─── Sample Instagram payloads ───────────────────────────────

@pytest.fixture
def raw_mobile_video():
    """Single reel from /media/{id}/info/."""
    return {
        "pk": 3456789012345,
        "code": "ABC123xyz",
        "media_type": 2,
        "image_versions2": {
            "candidates": [
                {"url": "https://cdn.example.com/thumb_1080.jpg", "width": 1080, "height": 1920},
                {"url": "https://cdn.example.com/thumb_480.jpg", "width": 480, "height": 854},
            ]
        },
        "video_versions": [
            {"url": "https://cdn.example.com/video_480.mp4", "width": 480, "height": 854},
            {"url": "https://cdn.example.com/video_1080.mp4", "width": 1080, "height": 1920},
            {"url": "https://cdn.example.com/video_720.mp4", "width": 720, "height": 1280},
        ],
    }


@pytest.fixture
def raw_mobile_carousel():
    """Carousel post from /media/{id}/info/: photo, video, photo."""
    return {
        "pk": 999,
        "code": "CAROUSEL1",
        "media_type": 8,
        "carousel_media": [
            {
                "image_versions2": {"candidates": [{"url": "https://cdn.example.com/c1.jpg", "width": 1080, "height": 1080}]},
            },
            {
                "image_versions2": {"candidates": [{"url": "https://cdn.example.com/c2_thumb.jpg", "width": 1080, "height": 1080}]},
                "video_versions": [
                    {"url": "https://cdn.example.com/c2_low.mp4", "width": 320, "height": 320},
                    {"url": "https://cdn.example.com/c2_high.mp4", "width": 1080, "height": 1080},
                ],
            },
            {
                "image_versions2": {"candidates": [{"url": "https://cdn.example.com/c3.jpg", "width": 1080, "height": 1080}]},
            },
        ],
    }


@pytest.fixture
def raw_graphql_sidecar():
    """shortcode_media with edge_sidecar_to_children."""
    return {
        "__typename": "XDTGraphSidecar",
        "shortcode": "SIDECAR1",
        "display_url": "https://cdn.example.com/cover.jpg",
        "edge_sidecar_to_children": {
            "edges": [
                {"node": {"display_url": "https://cdn.example.com/s1.jpg", "is_video": False}},
                {"node": {"display_url": "https://cdn.example.com/s2.jpg", "is_video": True,
                          "video_url": "https://cdn.example.com/s2.mp4"}},
                {"node": {"is_video": False}},
                {"node": {"display_url": "https://cdn.example.com/s4.jpg", "is_video": False}},
            ]
        },
    }
