"""
Instagram media resolver.

Turns a post shortcode, share token or story reference into direct media URLs
using Instagram's public web and mobile endpoints. Every lookup is best-effort:
strategies are tried in order and the first one that yields media wins.

Strategy chain (posts):
    1. Mobile API  - oembed -> media id -> /media/{id}/info/
    2. GraphQL     - PolarisPostActionLoadPostQueryQuery with the configured cookie
    3. GraphQL     - same query, anonymous tokens scraped from the post page
    4. Embed HTML  - /p/{shortcode}/embed/captioned/ embedded JSON state
"""

import html
import json
import logging
import random
import re
import secrets
import string
import time
from http.cookiejar import DefaultCookiePolicy
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)

IG_APP_ID = "936619743392459"
WEB_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120 Safari/537.36"
MOBILE_USER_AGENT = "Instagram 275.0.0.27.98 Android (33/13; 280dpi; 720x1423)"

OEMBED_URL = "https://i.instagram.com/api/v1/oembed/"
MEDIA_INFO_URL = "https://i.instagram.com/api/v1/media/{media_id}/info/"
POST_URL = "https://www.instagram.com/p/{shortcode}/"
EMBED_URL = "https://www.instagram.com/p/{shortcode}/embed/captioned/"
SHARE_URL = "https://www.instagram.com/share/{token}/"
GRAPHQL_QUERY_URL = "https://www.instagram.com/graphql/query"
GRAPHQL_API_URL = "https://www.instagram.com/api/graphql/"
BULK_ROUTE_URL = "https://www.instagram.com/ajax/bulk-route-definitions/"
RULING_URL = "https://www.instagram.com/api/v1/web/get_ruling_for_media_content_logged_out"
WEB_PROFILE_URL = "https://www.instagram.com/api/v1/users/web_profile_info/"

POST_QUERY_DOC_ID = "8845758582119845"
POST_QUERY_NAME = "PolarisPostActionLoadPostQueryQuery"
STORY_QUERY_DOC_ID = "25317500907894419"

COMMON_HEADERS = {
    "User-Agent": WEB_USER_AGENT,
    "Sec-GPC": "1",
    "Sec-Fetch-Site": "same-origin",
    "X-IG-App-ID": IG_APP_ID,
}

MOBILE_HEADERS = {
    "X-IG-App-Locale": "en_US",
    "X-IG-Device-Locale": "en_US",
    "X-IG-Mapped-Locale": "en_US",
    "User-Agent": MOBILE_USER_AGENT,
    "Accept-Language": "en-US",
    "X-FB-HTTP-Engine": "Liger",
    "X-FB-Client-IP": "True",
    "X-FB-Server-Cluster": "True",
}

EMBED_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-GB,en;q=0.9",
    "Cache-Control": "max-age=0",
    "DNT": "1",
    "User-Agent": WEB_USER_AGENT,
}

SHORTCODE_RE = re.compile(r"^[A-Za-z0-9_-]{5,}$")
POST_PATH_KINDS = {"p", "reel", "reels", "tv"}
INSTAGRAM_HOSTS = ("instagram.com", "instagr.am")

# Error tags
PRIVATE = "content.post.private"
AGE_RESTRICTED = "content.post.age"
FETCH_FAIL = "fetch.fail"
FETCH_EMPTY = "fetch.empty"
UNSUPPORTED = "link.unsupported"


# ============== Input parsing ==============
def parse_instagram_input(user_input: str) -> Tuple[str, object]:
    """
    Parse a URL or bare shortcode.
    Returns: (kind, value) where kind is 'post', 'share', 'story' or 'url'.
    For 'story' the value is a (username, story_id) tuple.
    """
    if not isinstance(user_input, str) or not user_input.strip():
        raise ValueError("Empty input")
    user_input = user_input.strip()

    if SHORTCODE_RE.match(user_input):
        return ("post", user_input)

    parsed = urlparse(user_input if "://" in user_input else f"https://{user_input}")
    host = (parsed.hostname or "").lower()
    if not any(host == h or host.endswith("." + h) for h in INSTAGRAM_HOSTS):
        raise ValueError(f"Not an Instagram link: {user_input}")

    parts = [p for p in parsed.path.split("/") if p]

    if len(parts) >= 2 and parts[0] in POST_PATH_KINDS:
        return ("post", parts[1])

    if len(parts) >= 2 and parts[0] == "share":
        # /share/{token}/ and /share/reel/{token}/
        token = parts[2] if len(parts) >= 3 and parts[1] in POST_PATH_KINDS else parts[1]
        return ("share", token)

    if parts and parts[0] == "stories":
        if len(parts) >= 3 and parts[1] != "highlights":
            return ("story", (parts[1], parts[2]))
        raise ValueError("Unsupported stories link")

    return ("url", user_input)


def post_url(kind: str, value) -> str:
    """Canonical Instagram link for a parsed target."""
    if kind == "post":
        return POST_URL.format(shortcode=value)
    if kind == "share":
        return SHARE_URL.format(token=value)
    if kind == "story":
        username, story_id = value
        return f"https://www.instagram.com/stories/{username}/{story_id}/"
    return str(value)


# ============== Media extraction ==============
def pick_best_rendition(candidates: List[dict]) -> Optional[dict]:
    """Pick the rendition with the largest width x height."""
    if not candidates:
        return None
    return max(candidates, key=lambda x: (x.get("width") or 0) * (x.get("height") or 0))


def _best_url(candidates: List[dict]) -> Optional[str]:
    best = pick_best_rendition(candidates)
    return best.get("url") if best else None


def extract_mobile_media(item: Optional[dict]) -> Optional[dict]:
    """Build a media descriptor from a mobile API / reels media item."""
    if not item:
        return None

    carousel = item.get("carousel_media")
    if carousel:
        items = []
        for entry in carousel:
            if not entry or not entry.get("image_versions2"):
                continue
            thumbnail = _best_url(entry["image_versions2"].get("candidates", []))
            if entry.get("video_versions"):
                items.append({"url": _best_url(entry["video_versions"]), "kind": "video", "thumbnail": thumbnail})
            else:
                items.append({"url": thumbnail, "kind": "photo", "thumbnail": thumbnail})
        items = [i for i in items if i["url"]]
        return {"items": items} if items else None

    thumbnail = _best_url((item.get("image_versions2") or {}).get("candidates", []))
    if item.get("video_versions"):
        url = _best_url(item["video_versions"])
        if url:
            return {"url": url, "kind": "video", "thumbnail": thumbnail}
    if thumbnail:
        return {"url": thumbnail, "kind": "photo", "thumbnail": thumbnail}
    return None


def extract_graphql_media(media: Optional[dict]) -> Optional[dict]:
    """Build a media descriptor from a GraphQL shortcode_media object."""
    if not media:
        return None

    sidecar = media.get("edge_sidecar_to_children")
    if sidecar:
        items = []
        for edge in sidecar.get("edges", []):
            node = (edge or {}).get("node") or {}
            if not node.get("display_url"):
                continue
            if node.get("is_video") and node.get("video_url"):
                items.append({"url": node["video_url"], "kind": "video", "thumbnail": node["display_url"]})
            else:
                items.append({"url": node["display_url"], "kind": "photo", "thumbnail": node["display_url"]})
        if items:
            return {"items": items}

    if media.get("video_url"):
        return {"url": media["video_url"], "kind": "video", "thumbnail": media.get("display_url")}
    if media.get("display_url"):
        return {"url": media["display_url"], "kind": "photo", "thumbnail": media["display_url"]}
    return None


def _shortcode_media(gql_data: Optional[dict]) -> Optional[dict]:
    if not gql_data:
        return None
    return gql_data.get("shortcode_media") or gql_data.get("xdt_shortcode_media")


# ============== Page scraping helpers ==============
def get_object_from_entries(name: str, page: str) -> Optional[dict]:
    """Find the JSON config object Instagram inlines as ["Name", [], {...}, 123]."""
    match = re.search(r'\["' + re.escape(name) + r'",.*?,(\{.*?\}),\d+\]', page or "")
    if not match:
        return None
    try:
        return json.loads(match.group(1))
    except json.JSONDecodeError:
        return None


def get_number_from_query(name: str, page: str) -> Optional[int]:
    match = re.search(re.escape(name) + r"=(\d+)", page or "")
    if match and int(match.group(1)):
        return int(match.group(1))
    return None


def parse_cookie_string(raw: str) -> Dict[str, str]:
    cookies = {}
    for pair in (raw or "").split(";"):
        if "=" not in pair:
            continue
        key, value = pair.strip().split("=", 1)
        cookies[key] = value
    return cookies


class SessionCookie:
    """Instagram cookie that picks up Set-Cookie and www-claim updates between calls."""

    def __init__(self, raw: str = ""):
        self.values = parse_cookie_string(raw)
        self.www_claim = None

    def __bool__(self):
        return bool(self.values)

    def __str__(self):
        return "; ".join(f"{k}={v}" for k, v in self.values.items())

    def update(self, response: requests.Response):
        for key, value in response.cookies.items():
            self.values[key] = value
        claim = response.headers.get("x-ig-set-www-claim")
        if claim:
            self.www_claim = claim


def _decode_meta(value: str) -> str:
    return html.unescape(value).strip()


# ============== Resolver ==============
class InstagramResolver:
    """Resolve Instagram links to direct media URLs."""

    def __init__(self, cookie: str = "", bearer_token: str = "", timeout: float = 30):
        self.cookie = SessionCookie(cookie) if cookie else None
        self.bearer_token = bearer_token or None
        self.timeout = timeout
        self.session = requests.Session()
        # Cookies are threaded explicitly; anonymous strategies must stay anonymous
        self.session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    # ---------- entry points ----------
    def resolve(self, user_input: str) -> dict:
        """Resolve any supported input. Never raises."""
        try:
            target = parse_instagram_input(user_input)
        except ValueError as e:
            logger.info(f"Unsupported input {user_input!r}: {e}")
            return {"error": UNSUPPORTED}
        return self.resolve_target(target)

    def resolve_target(self, target: Tuple[str, object]) -> dict:
        kind, value = target
        try:
            if kind == "post":
                return self.get_post(value)
            if kind == "share":
                shortcode = self.resolve_redirect(SHARE_URL.format(token=value))
                return self.get_post(shortcode) if shortcode else {"error": FETCH_EMPTY}
            if kind == "url":
                shortcode = self.resolve_redirect(value)
                return self.get_post(shortcode) if shortcode else {"error": UNSUPPORTED}
            if kind == "story":
                username, story_id = value
                return self.get_story(username, story_id)
        except Exception:
            logger.exception(f"Unexpected error resolving {kind} {value!r}")
            return {"error": FETCH_FAIL}
        return {"error": UNSUPPORTED}

    def resolve_redirect(self, url: str) -> Optional[str]:
        """Follow redirects and return the post shortcode the link lands on."""
        try:
            response = self.session.get(url, headers=EMBED_HEADERS, allow_redirects=True, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Redirect lookup failed for {url}: {e}")
            return None
        parts = [p for p in urlparse(response.url or url).path.split("/") if p]
        if len(parts) >= 2 and parts[0] in POST_PATH_KINDS:
            return parts[1]
        return None

    def get_post(self, shortcode: str) -> dict:
        """Run the strategy chain for a post shortcode."""
        strategies = [
            ("mobile_api", lambda: self._mobile_api_strategy(shortcode)),
            ("graphql_auth", lambda: self._graphql_strategy(shortcode, self.cookie) if self.cookie else None),
            ("graphql", lambda: self._graphql_strategy(shortcode)),
            ("embed", lambda: self._embed_strategy(shortcode)),
        ]

        for name, fn in strategies:
            try:
                result = fn()
                if result:
                    logger.info(f"Resolved post {shortcode} via {name}")
                    return result
                logger.debug(f"Strategy {name} returned nothing for {shortcode}")
            except Exception as e:
                logger.warning(f"Strategy {name} failed for {shortcode}: {e}")

        logger.warning(f"All strategies failed for post {shortcode}")
        return self.get_error_context(shortcode)

    # ---------- HTTP ----------
    def _get_json(self, url: str, headers: dict, params: Optional[dict] = None) -> Optional[dict]:
        try:
            response = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
            logger.debug(f"GET {url}: {response.status_code}")
            if response.status_code != 200:
                return None
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.debug(f"GET {url} failed: {e}")
            return None

    def _get_text(self, url: str, headers: dict) -> Optional[str]:
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
            logger.debug(f"GET {url}: {response.status_code}")
            return response.text
        except requests.exceptions.RequestException as e:
            logger.debug(f"GET {url} failed: {e}")
            return None

    def _mobile_headers(self, cookie: Optional[SessionCookie] = None, token: Optional[str] = None) -> dict:
        headers = dict(MOBILE_HEADERS)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if cookie:
            headers["Cookie"] = str(cookie)
        return headers

    # ---------- strategy 1: oembed -> mobile API ----------
    def get_media_id(self, shortcode: str, cookie: Optional[SessionCookie] = None,
                     token: Optional[str] = None) -> Optional[str]:
        data = self._get_json(
            OEMBED_URL,
            headers=self._mobile_headers(cookie, token),
            params={"url": POST_URL.format(shortcode=shortcode)},
        )
        return (data or {}).get("media_id")

    def get_media_info(self, media_id: str, cookie: Optional[SessionCookie] = None,
                       token: Optional[str] = None) -> Optional[dict]:
        data = self._get_json(MEDIA_INFO_URL.format(media_id=media_id), headers=self._mobile_headers(cookie, token))
        items = (data or {}).get("items") or []
        return items[0] if items else None

    def _mobile_api_strategy(self, shortcode: str) -> Optional[dict]:
        media_id = self.get_media_id(shortcode)
        if not media_id and self.bearer_token:
            media_id = self.get_media_id(shortcode, token=self.bearer_token)
        if not media_id and self.cookie:
            media_id = self.get_media_id(shortcode, cookie=self.cookie)
        if not media_id:
            return None

        attempts = []
        if self.bearer_token:
            attempts.append({"token": self.bearer_token})
        attempts.append({})
        if self.cookie:
            attempts.append({"cookie": self.cookie})

        for credentials in attempts:
            result = extract_mobile_media(self.get_media_info(media_id, **credentials))
            if result:
                return result
        return None

    # ---------- strategies 2 & 3: GraphQL ----------
    def get_graphql_params(self, shortcode: str, cookie: Optional[SessionCookie] = None) -> Tuple[dict, dict]:
        """Scrape the post page for the tokens the web GraphQL endpoint expects."""
        headers = dict(EMBED_HEADERS)
        if cookie:
            headers["Cookie"] = str(cookie)
        page = self._get_text(POST_URL.format(shortcode=shortcode), headers) or ""

        site_data = get_object_from_entries("SiteData", page) or {}
        polaris_site_data = get_object_from_entries("PolarisSiteData", page) or {}
        web_config = get_object_from_entries("DGWWebConfig", page) or {}
        push_info = get_object_from_entries("InstagramWebPushInfo", page) or {}
        bloks = get_object_from_entries("WebBloksVersioningID", page) or {}
        lsd = (get_object_from_entries("LSD", page) or {}).get("token") or secrets.token_urlsafe(8)
        csrf = (get_object_from_entries("InstagramSecurityConfig", page) or {}).get("csrf_token")

        anon_cookie = "; ".join(filter(None, [
            csrf and f"csrftoken={csrf}",
            polaris_site_data.get("device_id") and f"ig_did={polaris_site_data['device_id']}",
            "wd=1280x720",
            "dpr=2",
            polaris_site_data.get("machine_id") and f"mid={polaris_site_data['machine_id']}",
            "ig_nrcb=1",
        ]))

        request_headers = {
            "X-IG-App-ID": web_config.get("appId") or IG_APP_ID,
            "X-FB-LSD": lsd,
            "X-ASBD-ID": "129477",
            "Cookie": anon_cookie,
        }
        if csrf:
            request_headers["X-CSRFToken"] = csrf
        if bloks.get("versioningID"):
            request_headers["X-Bloks-Version-Id"] = bloks["versioningID"]

        body = {
            "__d": "www",
            "__a": "1",
            "__s": "::" + "".join(random.choices(string.ascii_lowercase, k=6)),
            "__hs": site_data.get("haste_session") or "20126.HYP:instagram_web_pkg.2.1...0",
            "__req": "b",
            "__ccg": "EXCELLENT",
            "__rev": push_info.get("rollout_hash") or "1019933358",
            "__hsi": site_data.get("hsi") or "7436540909012459023",
            "__dyn": secrets.token_urlsafe(154),
            "__csr": secrets.token_urlsafe(154),
            "__user": "0",
            "__comet_req": get_number_from_query("__comet_req", page) or 7,
            "av": "0",
            "dpr": "2",
            "lsd": lsd,
            "jazoest": get_number_from_query("jazoest", page) or random.randint(1000, 9999),
            "__spin_r": site_data.get("__spin_r") or "1019933358",
            "__spin_b": site_data.get("__spin_b") or "trunk",
            "__spin_t": site_data.get("__spin_t") or int(time.time()),
        }
        return request_headers, body

    def request_graphql(self, shortcode: str, cookie: Optional[SessionCookie] = None) -> Optional[dict]:
        headers, body = self.get_graphql_params(shortcode, cookie)
        headers = {
            **EMBED_HEADERS,
            **headers,
            "Content-Type": "application/x-www-form-urlencoded",
            "X-FB-Friendly-Name": POST_QUERY_NAME,
        }
        if cookie:
            headers["Cookie"] = str(cookie)

        data = {
            **body,
            "fb_api_caller_class": "RelayModern",
            "fb_api_req_friendly_name": POST_QUERY_NAME,
            "variables": json.dumps({
                "shortcode": shortcode,
                "fetch_tagged_user_count": None,
                "hoisted_comment_id": None,
                "hoisted_reply_id": None,
            }),
            "server_timestamps": "true",
            "doc_id": POST_QUERY_DOC_ID,
        }
        response = self.session.post(GRAPHQL_QUERY_URL, headers=headers, data=data, timeout=self.timeout)
        logger.debug(f"GraphQL post query: {response.status_code}")
        try:
            return response.json().get("data")
        except ValueError:
            return None

    def _graphql_strategy(self, shortcode: str, cookie: Optional[SessionCookie] = None) -> Optional[dict]:
        return extract_graphql_media(_shortcode_media(self.request_graphql(shortcode, cookie)))

    # ---------- strategy 4: embed page ----------
    def request_embed(self, shortcode: str, cookie: Optional[SessionCookie] = None) -> Optional[dict]:
        """Return the shortcode_media object embedded in the captioned embed page."""
        headers = dict(EMBED_HEADERS)
        if cookie:
            headers["Cookie"] = str(cookie)
        page = self._get_text(EMBED_URL.format(shortcode=shortcode), headers)
        if not page:
            return None

        match = re.search(r'"init",\[\],\[(.*?)\]\],', page, re.DOTALL)
        if match:
            try:
                init = json.loads(match.group(1))
                context = json.loads(init.get("contextJSON") or "null")
                media = _shortcode_media((context or {}).get("gql_data"))
                if media:
                    return media
            except (json.JSONDecodeError, AttributeError):
                logger.debug(f"Embed init state for {shortcode} is not JSON")

        match = re.search(
            r'window\.__additionalDataLoaded\s*\(\s*[\'"]extra[\'"]\s*,\s*({.+?})\s*\)',
            page, re.DOTALL
        )
        if match:
            try:
                return json.loads(match.group(1)).get("shortcode_media")
            except json.JSONDecodeError:
                logger.debug(f"Embed extra data for {shortcode} is not JSON")
        return None

    def _embed_strategy(self, shortcode: str) -> Optional[dict]:
        result = extract_graphql_media(self.request_embed(shortcode))
        if not result and self.cookie:
            result = extract_graphql_media(self.request_embed(shortcode, self.cookie))
        return result

    # ---------- error classification ----------
    def get_error_context(self, shortcode: str) -> dict:
        """Work out why a post could not be fetched."""
        try:
            headers, body = self.get_graphql_params(shortcode)
            response = self.session.post(
                BULK_ROUTE_URL,
                headers={
                    **EMBED_HEADERS,
                    **headers,
                    "Content-Type": "application/x-www-form-urlencoded",
                    "X-IG-D": "www",
                },
                data={"route_urls[0]": f"/p/{shortcode}/", "routing_namespace": "igx_www", **body},
                timeout=self.timeout,
            )
            text = response.text

            if '"tracePolicy":"polaris.privatePostPage"' in text:
                return {"error": PRIVATE}

            match = re.search(r'"media_id":\s*?"(\d+)","media_owner_id":\s*?"(\d+)"', text)
            if match:
                ruling = self._get_json(
                    RULING_URL,
                    headers={**COMMON_HEADERS, **headers},
                    params={"media_id": match.group(1), "owner_id": match.group(2)},
                ) or {}
                if "Restricted" in (ruling.get("title") or ""):
                    return {"error": AGE_RESTRICTED}
        except Exception as e:
            logger.warning(f"Error classification failed for {shortcode}: {e}")
            return {"error": FETCH_FAIL}

        return {"error": FETCH_EMPTY}

    # ---------- stories ----------
    def _request_web(self, url: str, cookie: SessionCookie, data: Optional[dict] = None,
                     params: Optional[dict] = None) -> Optional[dict]:
        headers = {
            **COMMON_HEADERS,
            "X-IG-WWW-Claim": cookie.www_claim or "0",
            "X-CSRFToken": cookie.values.get("csrftoken", ""),
            "Cookie": str(cookie),
        }
        if data is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            response = self.session.post(url, headers=headers, data=data, params=params, timeout=self.timeout)
        else:
            response = self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        cookie.update(response)
        try:
            return response.json()
        except ValueError:
            return None

    def username_to_id(self, username: str, cookie: SessionCookie) -> Optional[str]:
        data = self._request_web(WEB_PROFILE_URL, cookie, params={"username": username}) or {}
        user_id = ((data.get("data") or {}).get("user") or {}).get("id")
        return str(user_id) if user_id else None

    def find_dtsg(self, cookie: SessionCookie) -> Optional[str]:
        page = self._get_text("https://www.instagram.com/", {**COMMON_HEADERS, "Cookie": str(cookie)})
        match = re.search(r'"dtsg":\{"token":"(.*?)"', page or "")
        return match.group(1) if match else None

    def get_story(self, username: str, story_id: str) -> dict:
        """Resolve a single story item. Needs a logged-in cookie."""
        if not self.cookie:
            return {"error": UNSUPPORTED}

        user_id = self.username_to_id(username, self.cookie)
        if not user_id:
            return {"error": FETCH_EMPTY}

        data = self._request_web(GRAPHQL_API_URL, self.cookie, data={
            "fb_dtsg": self.find_dtsg(self.cookie) or "",
            "jazoest": "26438",
            "variables": json.dumps({"reel_ids_arr": [user_id]}),
            "server_timestamps": "true",
            "doc_id": STORY_QUERY_DOC_ID,
        }) or {}

        reels = ((data.get("data") or {}).get("xdt_api__v1__feed__reels_media") or {}).get("reels_media") or []
        reel = next((r for r in reels if str(r.get("id")) == user_id), None)
        if not reel:
            return {"error": FETCH_EMPTY}

        item = next((i for i in reel.get("items", []) if str(i.get("pk")) == str(story_id)), None)
        if not item:
            return {"error": FETCH_EMPTY}

        return extract_mobile_media(item) or {"error": UNSUPPORTED}

    # ---------- post details ----------
    def fetch_post_details(self, shortcode: str) -> dict:
        """Scrape caption and creator from the public post page."""
        details = {"caption": None, "username": None, "full_name": None}
        page = self._get_text(POST_URL.format(shortcode=shortcode), {"User-Agent": WEB_USER_AGENT})
        if not page:
            return details

        match = (re.search(r'<meta property="og:description" content="([^"]*?)"\s*/?>', page, re.IGNORECASE)
                 or re.search(r'<meta name="description" content="([^"]*?)"\s*/?>', page, re.IGNORECASE))
        if match and match.group(1):
            details["caption"] = _decode_meta(match.group(1)) or None

        # "Name on Instagram: ..." or "Name (@user) ..."
        match = re.search(r'<meta property="og:title" content="([^"]*?)"', page, re.IGNORECASE)
        if match:
            name = re.match(r"^(.+?)\s+(?:on Instagram|@|\(@)", _decode_meta(match.group(1)), re.IGNORECASE)
            if name:
                details["full_name"] = name.group(1).strip()

        for pattern in (r'"username":"([^"]+)"', r'"alternateName":"@([^"]+)"', r'"owner":\{"username":"([^"]+)"'):
            match = re.search(pattern, page)
            if match:
                details["username"] = match.group(1)
                break

        return details
