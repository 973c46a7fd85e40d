"""
X (Twitter) API v2 mention source.

Polls GET /2/tweets/search/recent for posts mentioning the service handle and
maps tweets, expanded authors and media into MentionEvents. The cursor is the
newest tweet id seen (since_id); an empty page leaves it unchanged. Windows
larger than one page are drained through next_token before the cursor moves.
Config: TWITTER_BEARER_TOKEN, X_API_BASE_URL, MENTION_PAGE_SIZE.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from tweetonium.core.exceptions import MentionSourceError
from tweetonium.logging import get_logger
from tweetonium.mentions.models import MediaRef, MentionBatch, MentionEvent
from tweetonium.mentions.source import DEFAULT_PAGE_SIZE, MentionSource

logger = get_logger(__name__)

SEARCH_PATH = "/tweets/search/recent"
REQUEST_TIMEOUT_SEC = 20.0
MAX_RETRIES = 3
RETRY_BACKOFF_SEC = 1.0

TWEET_FIELDS = "created_at,author_id,entities,attachments"
EXPANSIONS = "author_id,attachments.media_keys"
USER_FIELDS = "username,profile_image_url"
MEDIA_FIELDS = "url,preview_image_url,type"


def _linked_urls(tweet: dict[str, Any]) -> tuple[str, ...]:
    urls = (tweet.get("entities") or {}).get("urls") or []
    out = []
    for u in urls:
        url = u.get("expanded_url") or u.get("url")
        if url:
            out.append(url)
    return tuple(out)


def _tweet_order(event: MentionEvent) -> int:
    return int(event.source_id) if event.source_id.isdigit() else 0


def tweets_to_events(payload: dict[str, Any]) -> list[MentionEvent]:
    """Map a recent-search response body to events, oldest first."""
    includes = payload.get("includes") or {}
    users = {u["id"]: u for u in includes.get("users") or [] if u.get("id")}
    media = {m["media_key"]: MediaRef.from_api_item(m) for m in includes.get("media") or [] if m.get("media_key")}

    events: list[MentionEvent] = []
    for tweet in payload.get("data") or []:
        tweet_id = tweet.get("id")
        author_id = tweet.get("author_id")
        if not tweet_id or not author_id:
            logger.warning("x_api_tweet_incomplete", tweet_id=tweet_id, author_id=author_id)
            continue
        user = users.get(author_id) or {}
        keys = (tweet.get("attachments") or {}).get("media_keys") or []
        events.append(
            MentionEvent(
                source_id=str(tweet_id),
                author_external_id=str(author_id),
                author_handle=user.get("username"),
                author_profile_image=user.get("profile_image_url"),
                text=tweet.get("text") or "",
                media=tuple(media[k] for k in keys if k in media),
                linked_urls=_linked_urls(tweet),
                posted_at=tweet.get("created_at"),
            )
        )
    # the API returns newest first; process in posting order
    events.sort(key=_tweet_order)
    return events


class XMentionSource(MentionSource):
    """
    Recent-search client. Pass an httpx.Client (e.g. with MockTransport) to
    override transport; otherwise one is created with the bearer token.
    """

    name = "x_api"

    def __init__(
        self,
        bearer_token: str,
        handle: str,
        *,
        base_url: str = "https://api.twitter.com/2",
        page_size: int = DEFAULT_PAGE_SIZE,
        client: httpx.Client | None = None,
        retry_backoff_sec: float = RETRY_BACKOFF_SEC,
    ) -> None:
        if not bearer_token:
            raise ValueError("bearer_token is required")
        self._handle = handle.lstrip("@")
        self._page_size = page_size
        self._retry_backoff_sec = retry_backoff_sec
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SEC),
        )
        self._headers = {"Authorization": f"Bearer {bearer_token}"}

    def close(self) -> None:
        self._client.close()

    def _params(self, cursor: str | None) -> dict[str, Any]:
        params: dict[str, Any] = {
            "query": f"@{self._handle}",
            "max_results": self._page_size,
            "tweet.fields": TWEET_FIELDS,
            "expansions": EXPANSIONS,
            "user.fields": USER_FIELDS,
            "media.fields": MEDIA_FIELDS,
        }
        if cursor:
            params["since_id"] = cursor
        return params

    def _get(self, params: dict[str, Any]) -> httpx.Response:
        resp: httpx.Response | None = None
        for attempt in range(MAX_RETRIES):
            try:
                resp = self._client.get(SEARCH_PATH, params=params, headers=self._headers)
            except httpx.HTTPError as e:
                raise MentionSourceError(f"mention search request failed: {e}") from e
            if resp.status_code != 429 or attempt == MAX_RETRIES - 1:
                return resp
            wait = self._retry_backoff_sec * (2 ** attempt)
            logger.warning("x_api_rate_limited", attempt=attempt + 1, backoff_sec=wait)
            time.sleep(wait)
        return resp

    def _fetch_page(self, params: dict[str, Any]) -> dict[str, Any]:
        resp = self._get(params)
        if resp.status_code >= 400:
            logger.warning("x_api_error", status=resp.status_code, body=resp.text[:200])
            raise MentionSourceError(f"mention search returned HTTP {resp.status_code}", status=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise MentionSourceError("mention search returned invalid JSON") from e

    def fetch_since(self, cursor: str | None) -> MentionBatch:
        """
        With a cursor, follows meta.next_token until the since_id window is
        drained, so the cursor only moves past tweets that were returned.
        Without one, only the most recent page is read.
        """
        params = self._params(cursor)
        payload = self._fetch_page(params)
        newest_id = (payload.get("meta") or {}).get("newest_id")
        events = tweets_to_events(payload)
        pages = 1

        next_token = (payload.get("meta") or {}).get("next_token")
        while cursor and next_token:
            payload = self._fetch_page({**params, "pagination_token": next_token})
            events.extend(tweets_to_events(payload))
            next_token = (payload.get("meta") or {}).get("next_token")
            pages += 1

        events.sort(key=_tweet_order)
        logger.info(
            "x_api_mentions_fetched",
            handle=self._handle,
            count=len(events),
            pages=pages,
            since_id=cursor,
            newest_id=newest_id,
        )
        return MentionBatch(events=tuple(events), next_cursor=newest_id or cursor)
