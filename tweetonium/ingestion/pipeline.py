"""
Mention ingestion: turn new mentions into lazy-minted artifacts.

One run (ingest_once) loads the saved cursor, fetches the next page from the
mention source and processes events in source order:

  dedup -> mention check -> image -> identity -> wallet -> parse -> lazy mint

Per-event failures are logged and counted; the run continues. The cursor is
saved only after the whole batch has been processed, so a failed fetch or an
interrupted run replays the same window next time. The record store's dedup
index absorbs any replayed event. A cursor-store error is reported in
IngestionReport.cursor_error instead of being raised. Runs are serialized.
"""

from __future__ import annotations

import random
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

from tweetonium.chain.base import ChainAdapter
from tweetonium.core.exceptions import ConflictError, DuplicateError
from tweetonium.core.timeouts import call_with_timeout
from tweetonium.database.cursor_store import CursorStore, MemoryCursorStore
from tweetonium.database.models import Artifact, Identity
from tweetonium.database.store import RecordStore
from tweetonium.ingestion.minting import lazy_mint
from tweetonium.logging import get_logger
from tweetonium.mentions.models import MentionEvent
from tweetonium.mentions.parser import DEFAULT_HANDLE, mentions_handle, parse_mention_text, resolve_image
from tweetonium.mentions.source import MentionSource

logger = get_logger(__name__)

DEFAULT_FEATURED_RATIO = 0.5

FeaturedPicker = Callable[[MentionEvent], bool]


class IngestionPhase(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    DEDUPLICATING = "deduplicating"
    RESOLVING_IDENTITY = "resolving_identity"
    RESOLVING_WALLET = "resolving_wallet"
    PARSING = "parsing"
    LAZY_MINTING = "lazy_minting"


class EventOutcome(str, Enum):
    MINTED = "minted"
    DUPLICATE = "duplicate"
    SKIPPED_NO_MENTION = "skipped_no_mention"
    SKIPPED_NO_IMAGE = "skipped_no_image"


@dataclass
class IngestionReport:
    """Counts for one ingest_once run."""

    fetched: int = 0
    minted: int = 0
    duplicates: int = 0
    skipped_no_mention: int = 0
    skipped_no_image: int = 0
    failed: int = 0
    fetch_failed: bool = False
    cursor_error: str | None = None
    interrupted: bool = False
    cursor_before: str | None = None
    cursor_after: str | None = None
    artifact_ids: list[int] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return self.minted + self.duplicates + self.skipped_no_mention + self.skipped_no_image + self.failed

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def random_featured_picker(
    ratio: float = DEFAULT_FEATURED_RATIO,
    rng: random.Random | None = None,
) -> FeaturedPicker:
    """Feature each new artifact with probability ratio. Seed rng for reproducible runs."""
    picker_rng = rng or random.Random()
    lock = threading.Lock()

    def pick(event: MentionEvent) -> bool:
        with lock:
            return picker_rng.random() < ratio

    return pick


class MentionIngestor:
    """Polls a MentionSource once per ingest_once() call and lazy-mints new mentions."""

    def __init__(
        self,
        store: RecordStore,
        chain: ChainAdapter,
        source: MentionSource,
        *,
        cursor_store: CursorStore | None = None,
        handle: str = DEFAULT_HANDLE,
        require_mention: bool = True,
        featured_picker: FeaturedPicker | None = None,
        fetch_timeout_sec: float | None = None,
        chain_timeout_sec: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._chain = chain
        self._source = source
        self._cursor_store = cursor_store or MemoryCursorStore()
        self._handle = handle.lstrip("@")
        self._require_mention = require_mention
        self._featured_picker = featured_picker or random_featured_picker()
        self._fetch_timeout_sec = fetch_timeout_sec
        self._chain_timeout_sec = chain_timeout_sec
        self._clock = clock
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._phase = IngestionPhase.IDLE

    @property
    def phase(self) -> IngestionPhase:
        return self._phase

    @property
    def source(self) -> MentionSource:
        return self._source

    @property
    def source_name(self) -> str:
        return self._source.name

    def request_stop(self) -> None:
        """Stop the current run after the in-flight event; later runs return immediately."""
        self._stop_event.set()

    def clear_stop(self) -> None:
        self._stop_event.clear()

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def _set_phase(self, phase: IngestionPhase) -> None:
        self._phase = phase

    def ingest_once(self) -> IngestionReport:
        """Run one poll. Per-event, fetch and cursor-store failures are reported, not raised."""
        with self._run_lock:
            try:
                return self._run()
            finally:
                self._set_phase(IngestionPhase.IDLE)

    def _run(self) -> IngestionReport:
        source = self._source.name
        try:
            cursor = self._cursor_store.load(source)
        except Exception as e:
            logger.error("ingest_cursor_load_failed", source=source, error=str(e))
            return IngestionReport(cursor_error=str(e))
        report = IngestionReport(cursor_before=cursor, cursor_after=cursor)
        if self._stop_event.is_set():
            report.interrupted = True
            return report

        self._set_phase(IngestionPhase.FETCHING)
        try:
            batch = call_with_timeout(
                self._source.fetch_since,
                cursor,
                timeout=self._fetch_timeout_sec,
                label="mention_source.fetch_since",
            )
        except Exception as e:
            report.fetch_failed = True
            logger.warning("ingest_fetch_failed", source=source, cursor=cursor, error=str(e))
            return report

        report.fetched = len(batch.events)
        for event in batch.events:
            if self._stop_event.is_set():
                report.interrupted = True
                logger.info("ingest_interrupted", source=source, remaining=report.fetched - report.processed)
                break
            try:
                outcome, artifact = self._process_event(event)
            except DuplicateError:
                # lost a race with a concurrent insert for the same mention
                report.duplicates += 1
                logger.info("ingest_event_skipped", source_id=event.source_id, reason="duplicate")
                continue
            except Exception as e:
                report.failed += 1
                logger.warning(
                    "ingest_event_failed",
                    source_id=event.source_id,
                    phase=self._phase.value,
                    error=str(e),
                    exc_info=True,
                )
                continue
            if outcome is EventOutcome.MINTED:
                report.minted += 1
                report.artifact_ids.append(artifact.id)
            elif outcome is EventOutcome.DUPLICATE:
                report.duplicates += 1
            elif outcome is EventOutcome.SKIPPED_NO_MENTION:
                report.skipped_no_mention += 1
            else:
                report.skipped_no_image += 1

        if not report.interrupted:
            if batch.next_cursor is not None and batch.next_cursor != cursor:
                try:
                    self._cursor_store.save(source, batch.next_cursor)
                    report.cursor_after = batch.next_cursor
                except Exception as e:
                    # events are deduped on replay
                    report.cursor_error = str(e)
                    logger.error("ingest_cursor_save_failed", source=source, cursor=batch.next_cursor, error=str(e))

        logger.info(
            "ingest_run_done",
            source=source,
            fetched=report.fetched,
            minted=report.minted,
            duplicates=report.duplicates,
            skipped_no_mention=report.skipped_no_mention,
            skipped_no_image=report.skipped_no_image,
            failed=report.failed,
            interrupted=report.interrupted,
            cursor=report.cursor_after,
        )
        return report

    def _process_event(self, event: MentionEvent) -> tuple[EventOutcome, Artifact | None]:
        self._set_phase(IngestionPhase.DEDUPLICATING)
        if self._store.has_external_source(event.source_id):
            logger.debug("ingest_event_skipped", source_id=event.source_id, reason="duplicate")
            return EventOutcome.DUPLICATE, None

        if self._require_mention and not mentions_handle(event.text, self._handle):
            logger.info("ingest_event_skipped", source_id=event.source_id, reason="no_mention")
            return EventOutcome.SKIPPED_NO_MENTION, None

        image_url = resolve_image(event)
        if image_url is None:
            logger.info("ingest_event_skipped", source_id=event.source_id, reason="no_image")
            return EventOutcome.SKIPPED_NO_IMAGE, None

        self._set_phase(IngestionPhase.RESOLVING_IDENTITY)
        identity = self._resolve_identity(event)

        self._set_phase(IngestionPhase.RESOLVING_WALLET)
        wallet = self._store.get_or_create_wallet(identity.id)

        self._set_phase(IngestionPhase.PARSING)
        parsed = parse_mention_text(event.text, self._handle)
        title = parsed.title or f"Tweet NFT by @{identity.handle}"
        description = parsed.description or event.text

        self._set_phase(IngestionPhase.LAZY_MINTING)
        artifact = lazy_mint(
            self._store,
            self._chain,
            creator=identity,
            wallet=wallet,
            title=title,
            description=description,
            image_url=image_url,
            attributes=[
                {"trait_type": "Tweet ID", "value": event.source_id},
                {"trait_type": "Posted", "value": event.posted_at or self._now_iso()},
            ],
            featured=bool(self._featured_picker(event)),
            external_source_id=event.source_id,
            chain_timeout_sec=self._chain_timeout_sec,
            clock=self._clock,
        )
        return EventOutcome.MINTED, artifact

    def _resolve_identity(self, event: MentionEvent) -> Identity:
        external_id = event.author_external_id
        existing = self._store.get_identity_by_external_id(external_id)
        if existing is not None:
            return existing
        handle = (event.author_handle or "").strip() or f"user_{external_id}"
        try:
            return self._store.create_identity(handle, event.author_profile_image, external_id)
        except ConflictError:
            alt = f"{handle}_{external_id}"
            logger.info("ingest_handle_conflict", handle=handle, fallback_handle=alt, external_id=external_id)
            return self._store.create_identity(alt, event.author_profile_image, external_id)

    def _now_iso(self) -> str:
        return datetime.fromtimestamp(self._clock(), tz=timezone.utc).isoformat()
