"""
videoWiper - Discord media relay
A Flask API that posts uploaded files and Instagram media into a Discord channel.
"""

import os
import re
import time
import logging
from datetime import datetime, timezone
from typing import List, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename

from config import get_config
from discord_relay import DiscordRelay, RelayError, build_media_embed
from instagram_resolver import InstagramResolver, parse_instagram_input, post_url
from reel_downloader import ReelDownloader, ReelDownloadError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============== Flask App Setup ==============
Config = get_config()

app = Flask(__name__)
app.config.from_object(Config)
CORS(app)

DEFAULT_UPLOAD_MESSAGE = "📤 Uploaded by videoWiper"
REEL_SHORTCODE_RE = re.compile(r"(?:reel|p)/([A-Za-z0-9_-]+)")

# ============== Channel Configuration ==============
# Process memory only; reset on restart
channel_config = {
    "guildId": Config.GUILD_ID,
    "channelId": Config.CHANNEL_ID,
}


def get_channel_config() -> dict:
    return dict(channel_config)


def set_channel_config(guild_id, channel_id) -> dict:
    global channel_config
    channel_config = {"guildId": guild_id, "channelId": channel_id}
    return dict(channel_config)


# ============== Global Clients ==============
_relay: Optional[DiscordRelay] = None
_resolver: Optional[InstagramResolver] = None
_downloader: Optional[ReelDownloader] = None


def get_relay() -> DiscordRelay:
    """Get or create the Discord relay; logs in when a bot token is configured."""
    global _relay
    if _relay is None:
        _relay = DiscordRelay(
            app.config["DISCORD_TOKEN"],
            send_timeout=app.config["DISCORD_SEND_TIMEOUT"],
            public_url=app.config["API_DOMAIN"] or f"http://localhost:{app.config['PORT']}",
        )
        if Config.validate():
            _relay.start()
        else:
            logger.warning("DISCORD_TOKEN not set or placeholder detected. Discord client will not log in.")
    return _relay


def shutdown_relay():
    """Disconnect the bot (graceful shutdown)."""
    global _relay
    if _relay is not None:
        _relay.close()
        _relay = None


def get_resolver() -> InstagramResolver:
    """Get or create the Instagram resolver."""
    global _resolver
    if _resolver is None:
        _resolver = InstagramResolver(
            cookie=app.config["IG_COOKIE"],
            bearer_token=app.config["IG_BEARER_TOKEN"],
            timeout=app.config["REQUEST_TIMEOUT"],
        )
    return _resolver


def get_downloader() -> ReelDownloader:
    """Get or create the RapidAPI reel downloader."""
    global _downloader
    if _downloader is None:
        _downloader = ReelDownloader(
            app.config["RAPIDAPI_KEY"],
            app.config["RAPIDAPI_HOST"],
            timeout=app.config["REQUEST_TIMEOUT"],
        )
    return _downloader


# ============== Helper Functions ==============
def error_response(message: str, status_code: int, **extra):
    return jsonify({"success": False, "error": message, **extra}), status_code


def allowed_file(filename: str) -> bool:
    """Check the extension against the supported video and image formats."""
    if "." not in filename:
        return False
    ext = filename.rsplit(".", 1)[1].lower()
    return ext in app.config["VIDEO_EXTENSIONS"] or ext in app.config["IMAGE_EXTENSIONS"]


def upload_folder() -> str:
    folder = app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def remove_file(path: str):
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"Could not delete {path}: {e}")


def relay_instagram_post(relay: DiscordRelay, resolver: InstagramResolver, channel_id,
                         raw_input, message: Optional[str] = None) -> List[dict]:
    """Resolve one Instagram link and post each of its media items. Returns per-item results."""
    if not isinstance(raw_input, str) or not raw_input.strip():
        return [{"input": raw_input, "ok": False, "error": "link.unsupported"}]
    try:
        kind, value = parse_instagram_input(raw_input)
    except ValueError:
        return [{"input": raw_input, "ok": False, "error": "link.unsupported"}]

    logger.info(f"Processing URL: {raw_input} ({kind})")
    info = resolver.resolve_target((kind, value))
    details = resolver.fetch_post_details(value) if kind == "post" else {}

    items = info.get("items") or ([info] if info.get("url") else [])
    if not items:
        logger.info(f"No media found for {raw_input}: {info.get('error')}")
        return [{"input": raw_input, "ok": False, "error": info.get("error") or "no_media"}]

    if kind in ("post", "share"):
        ref = value
    elif kind == "story":
        ref = value[1]
    else:
        ref = "media"
    caption = details.get("caption") or message or f"Instagram {ref}"
    creator = details.get("username")
    creator_name = details.get("full_name")
    footer = None
    if creator:
        footer = f"Posted by @{creator}" + (f" ({creator_name})" if creator_name else "")
    link = post_url(kind, value)

    posted = []
    total = len(items)
    for index, item in enumerate(items, start=1):
        title = caption + (f" ({index}/{total})" if total > 1 else "")
        is_photo = item["kind"] == "photo"
        embed = build_media_embed(
            title,
            link,
            image_url=item["url"] if is_photo else item.get("thumbnail"),
            footer=footer,
        )
        # Videos can't be embedded; the link in the content gets Discord's player
        if is_photo:
            content = message if index == 1 else None
        else:
            content = item["url"]

        try:
            relay.send(channel_id, content=content, embed=embed)
        except RelayError as e:
            logger.error(f"Failed to post item {index}/{total} of {raw_input}: {e.message}")
            posted.append({"input": raw_input, "ok": False, "error": e.message, "index": index, "total": total})
            continue

        logger.info(f"Posted item {index}/{total}: {item['kind']}")
        posted.append({
            "input": raw_input,
            "ok": True,
            "url": item["url"],
            "kind": item["kind"],
            "index": index,
            "total": total,
            "title": title,
            "creator": creator,
            "creatorName": creator_name,
        })
    return posted


# ============== API Routes ==============
@app.route('/api/guilds', methods=['GET'])
def list_guilds():
    """List the servers the bot is in."""
    try:
        guilds = get_relay().list_guilds()
        return jsonify({"success": True, "guilds": guilds})
    except RelayError as e:
        return error_response(e.message, e.status_code)


@app.route('/api/channels/<guild_id>', methods=['GET'])
def list_channels(guild_id):
    """List text channels of a server."""
    try:
        channels = get_relay().list_channels(guild_id)
        return jsonify({"success": True, "channels": channels})
    except RelayError as e:
        return error_response(e.message, e.status_code)


@app.route('/api/config', methods=['GET', 'POST'])
def channel_settings():
    """Read or replace the target channel."""
    if request.method == 'GET':
        return jsonify({"success": True, "config": get_channel_config()})

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)

    guild_id = data.get("guildId", "")
    channel_id = data.get("channelId", "")
    for value in (guild_id, channel_id):
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            return error_response("guildId and channelId must be strings", 400)

    config = set_channel_config(guild_id, channel_id)
    logger.info(f"Channel configured: guild={guild_id} channel={channel_id}")
    return jsonify({"success": True, "config": config})


@app.route('/api/upload', methods=['POST'])
def upload_files():
    """Send uploaded files to the configured channel, one message per file."""
    files = [f for f in request.files.getlist('files') if f and f.filename]
    if not files:
        return error_response("No files provided", 400)
    if len(files) > app.config["MAX_UPLOAD_FILES"]:
        return error_response(f"Too many files (max {app.config['MAX_UPLOAD_FILES']})", 400)
    for f in files:
        if not allowed_file(f.filename):
            return error_response(f"Unsupported file format: {f.filename}", 400)

    channel_id = get_channel_config()["channelId"]
    if not channel_id:
        return error_response("Channel not configured", 400)

    message = request.form.get('message') or DEFAULT_UPLOAD_MESSAGE
    max_bytes = app.config["MAX_UPLOAD_MB"] * 1024 * 1024
    pending = []

    try:
        relay = get_relay()
        channel_name = relay.get_channel_name(channel_id)
        folder = upload_folder()
        saved = []
        uploaded = []

        # Every file is saved and size-checked before anything is sent
        for index, f in enumerate(files):
            path = os.path.join(folder, f"{int(time.time() * 1000)}-{index}-{secure_filename(f.filename) or 'upload'}")
            f.save(path)
            pending.append(path)

            size = os.path.getsize(path)
            if size > max_bytes:
                return error_response(
                    f"File {f.filename} exceeds the {app.config['MAX_UPLOAD_MB']} MB limit", 413
                )
            saved.append((f.filename, path, size))

        for name, path, size in saved:
            relay.send(channel_id, content=message, files=[(path, name)])
            uploaded.append({"name": name, "size": size})
            logger.info(f"Uploaded {name} ({size} bytes) to #{channel_name}")

            remove_file(path)
            pending.remove(path)

        return jsonify({"success": True, "files": uploaded, "channel": channel_name})

    except RelayError as e:
        logger.error(f"Upload failed: {e.message}")
        return error_response(e.message, e.status_code)
    except Exception:
        logger.exception("Unexpected error in upload_files")
        return error_response("An unexpected error occurred", 500)
    finally:
        # Clean up anything left behind by an early return or error
        for path in pending:
            remove_file(path)


@app.route('/api/download-reel', methods=['POST'])
def download_reel():
    """Fetch a reel through RapidAPI and upload the video to the channel."""
    data = request.get_json(silent=True) or {}
    url = data.get("url") if isinstance(data, dict) else None
    message = data.get("message") if isinstance(data, dict) else None

    channel_id = get_channel_config()["channelId"]
    if not channel_id:
        return error_response("Channel not configured", 400)
    if not url or not isinstance(url, str):
        return error_response("Instagram URL is required", 400)

    path = None
    try:
        relay = get_relay()
        channel_name = relay.get_channel_name(channel_id)

        match = REEL_SHORTCODE_RE.search(url)
        if not match:
            return error_response("Invalid Instagram URL", 400)
        shortcode = match.group(1)

        downloader = get_downloader()
        reel = downloader.fetch_reel(url)
        summary = downloader.describe(reel, url)

        filename = f"reel_{shortcode}_{int(time.time() * 1000)}.mp4"
        path = os.path.join(upload_folder(), filename)
        downloader.download(reel["download_url"], path)

        content = message or (
            f"🎬 **Instagram Reel Downloaded**\n"
            f"📝 **Title:** {summary['title']}\n"
            f"👤 **Author:** @{summary['username']}\n"
            f"❤️ **Likes:** {summary['likes']}\n"
            f"👁️ **Views:** {summary['views']}\n"
            f"🔗 **Source:** {url}"
        )
        relay.send(channel_id, content=content, files=[(path, filename)])

        return jsonify({"success": True, "reel": summary, "channel": channel_name})

    except RelayError as e:
        logger.error(f"Reel upload failed: {e.message}")
        return error_response(e.message, e.status_code)
    except ReelDownloadError as e:
        logger.error(f"Instagram download error: {e.message}")
        if e.details is not None:
            return error_response(e.message, e.status_code, details=e.details)
        return error_response(e.message, e.status_code,
                              details="Make sure you have a valid RapidAPI key configured")
    except Exception:
        logger.exception("Unexpected error in download_reel")
        return error_response("Failed to download Instagram reel", 500)
    finally:
        if path:
            remove_file(path)


@app.route('/api/post-instagram', methods=['POST'])
def post_instagram():
    """Resolve Instagram URLs/shortcodes and post their media as embeds."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)

    urls = data.get("urls")
    if not urls or not isinstance(urls, list):
        return error_response("No URLs provided", 400)

    message = data.get("message") if isinstance(data.get("message"), str) else None
    channel_id = data.get("channelId") or get_channel_config()["channelId"]
    if not channel_id:
        return error_response("Channel not configured", 400)

    try:
        relay = get_relay()
        relay.get_channel_name(channel_id)
        resolver = get_resolver()

        posted = []
        for raw_input in urls:
            posted.extend(relay_instagram_post(relay, resolver, channel_id, raw_input, message))

        logger.info(f"Finished processing {len(urls)} URL(s), {sum(1 for p in posted if p['ok'])} item(s) posted")
        return jsonify({"success": True, "posted": posted})

    except RelayError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.exception("Fatal error in post_instagram")
        return error_response(str(e) or "An unexpected error occurred", 500)


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "discord_ready": _relay is not None and _relay.is_ready,
        "channel_configured": bool(get_channel_config()["channelId"]),
    })


# ============== Error Handlers ==============
@app.errorhandler(404)
def not_found(e):
    return jsonify({"success": False, "error": "Not found"}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"success": False, "error": "Method not allowed"}), 405


@app.errorhandler(413)
def payload_too_large(e):
    return jsonify({"success": False, "error": "Upload too large"}), 413


@app.errorhandler(500)
def internal_error(e):
    return jsonify({"success": False, "error": "Internal server error"}), 500
