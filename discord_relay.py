"""
Discord relay: a bot account that posts media into a channel.

The discord.py client runs on its own event loop in a daemon thread so the
Flask request handlers can call into it synchronously.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Iterable, List, Optional, Tuple

import discord

logger = logging.getLogger(__name__)

EMBED_TITLE_LIMIT = 256


class RelayError(Exception):
    """Custom exception for Discord relay errors."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def build_media_embed(title: str, url: str, image_url: Optional[str] = None,
                      footer: Optional[str] = None) -> discord.Embed:
    """Embed shown for a shared Instagram media item."""
    embed = discord.Embed(title=title[:EMBED_TITLE_LIMIT], url=url, timestamp=discord.utils.utcnow())
    if image_url:
        embed.set_image(url=image_url)
    if footer:
        embed.set_footer(text=footer)
    return embed


def _snowflake(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class RelayClient(discord.Client):
    """Bot client; only needs guild and guild message intents."""

    def __init__(self, public_url: str = ""):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.guild_messages = True
        super().__init__(intents=intents)
        self.public_url = public_url

    async def on_ready(self):
        logger.info("videoWiper bot is online")
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        if self.public_url:
            logger.info(f"Web interface running on {self.public_url}")
        logger.info(f"Connected to {len(self.guilds)} server(s):")
        for guild in self.guilds:
            logger.info(f"  - {guild.name} ({guild.id})")
        await self.change_presence(
            activity=discord.Activity(type=discord.ActivityType.watching, name="Managing uploads")
        )

    async def on_guild_join(self, guild: discord.Guild):
        logger.info(f"Bot joined server: {guild.name} ({guild.id})")


class DiscordRelay:
    """Thread-safe facade over the bot client."""

    def __init__(self, token: str, send_timeout: float = 120, public_url: str = ""):
        self.token = token
        self.send_timeout = send_timeout
        self.client = RelayClient(public_url=public_url)
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    # ---------- lifecycle ----------
    def start(self):
        """Log in on a background event loop."""
        if self._thread is not None:
            return
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="discord-relay", daemon=True)
        self._thread.start()

    def _run(self):
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self.client.start(self.token))
        except discord.LoginFailure:
            logger.error("Discord login failed: the bot token was rejected")
        except Exception:
            logger.exception("Discord client stopped unexpectedly")

    @property
    def is_ready(self) -> bool:
        return self.loop is not None and self.client.is_ready()

    def close(self):
        """Disconnect the bot and stop its loop."""
        if self.loop is None:
            return
        # A failed login leaves the thread finished and the loop stopped
        if self._thread is not None and self._thread.is_alive() and not self.client.is_closed():
            logger.info("Shutting down Discord client...")
            future = asyncio.run_coroutine_threadsafe(self.client.close(), self.loop)
            try:
                future.result(timeout=10)
            except concurrent.futures.TimeoutError:
                logger.warning("Discord client did not close within 10s")
        if self._thread is not None:
            self._thread.join(timeout=10)
            if self._thread.is_alive():
                logger.warning("Discord thread still running; leaving its loop open")
                return
        self.loop.close()
        self.loop = None
        self._thread = None

    def _call(self, coro):
        """Run a coroutine on the bot loop and wait for its result."""
        if not self.is_ready:
            coro.close()
            raise RelayError("Discord client is not ready", 503)

        future = asyncio.run_coroutine_threadsafe(coro, self.loop)
        try:
            return future.result(timeout=self.send_timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise RelayError("Timed out waiting for Discord", 504)
        except discord.Forbidden as e:
            raise RelayError(f"Missing Discord permissions: {e.text}", 403)
        except discord.HTTPException as e:
            raise RelayError(f"Discord request failed: {e.text or e.status}", 502)

    # ---------- queries ----------
    def list_guilds(self) -> List[dict]:
        async def _list():
            return [
                {"id": str(guild.id), "name": guild.name, "icon": guild.icon.url if guild.icon else None}
                for guild in self.client.guilds
            ]
        return self._call(_list())

    def list_channels(self, guild_id: str) -> List[dict]:
        async def _list():
            guild_snowflake = _snowflake(guild_id)
            guild = self.client.get_guild(guild_snowflake) if guild_snowflake else None
            if guild is None:
                return None
            return [
                {"id": str(channel.id), "name": channel.name, "type": str(channel.type)}
                for channel in guild.channels
                if isinstance(channel, discord.abc.Messageable)
            ]
        channels = self._call(_list())
        if channels is None:
            raise RelayError("Guild not found", 404)
        return channels

    def _get_channel(self, channel_id):
        channel_snowflake = _snowflake(channel_id)
        channel = self.client.get_channel(channel_snowflake) if channel_snowflake else None
        if channel is None or not isinstance(channel, discord.abc.Messageable):
            return None
        return channel

    def get_channel_name(self, channel_id: str) -> str:
        async def _name():
            channel = self._get_channel(channel_id)
            return channel.name if channel is not None else None
        name = self._call(_name())
        if name is None:
            raise RelayError("Channel not found", 404)
        return name

    # ---------- sending ----------
    def send(self, channel_id: str, content: Optional[str] = None, embed: Optional[discord.Embed] = None,
             files: Optional[Iterable[Tuple[str, str]]] = None) -> str:
        """Post a message; files are (path, filename) pairs. Returns the message id."""
        files = list(files or [])

        async def _send():
            channel = self._get_channel(channel_id)
            if channel is None:
                return None
            kwargs = {}
            if content:
                kwargs["content"] = content
            if embed is not None:
                kwargs["embed"] = embed
            if files:
                kwargs["files"] = [discord.File(path, filename=name) for path, name in files]
            message = await channel.send(**kwargs)
            return str(message.id)

        message_id = self._call(_send())
        if message_id is None:
            raise RelayError("Channel not found", 404)
        return message_id
