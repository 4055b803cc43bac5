"""SwipeShop app bootstrap and per-user session wiring."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from logic.dedup import CandidateDeduplicator
from logic.feed_assembler import FeedAssembler
from logic.ledger import SCAN_AVOID_DELTA, SCAN_BOOST_DELTA, TagAffinityLedger
from logic.persona import TastePersona, derive_persona
from logic.pick_builder import build_picks
from logic.reconciler import DecisionOutcome, InvalidDecisionError, SwipeReconciler
from logic.room_analysis import RoomAnalysisPipeline
from logic.scan_rules import merge_unique
from memory.profile import Profile
from memory.profile_store import JSONProfileStore, PersistenceWriteFailed, ProfileStore, SQLiteProfileStore
from models.decision import DecisionSource, Direction, SubAction
from models.room_analysis import RoomAnalysisResult, RoomScanPick
from models.taxonomy import INTEREST_IDS, is_interest_id, normalise_tag
from swipe_app.config import AppConfig
from swipe_app.logging_config import configure_logging, get_logger, log_event, operation_context
from tools.catalog_client import CatalogClient, HTTPCatalogClient, InMemoryCatalog
from tools.demo_catalog import demo_items
from tools.image_ops import ImageInput
from tools.vision_models import GeminiVisionModel, StaticVisionModel, VisionModelService

LOGGER = get_logger(__name__)

FEED_PREVIEW_SIZE = 10


class SessionNotFound(KeyError):
    """Raised when an operation names a user without an open session."""


class UnknownPick(KeyError):
    """Raised when a pick action names an item not in the current pick list."""


@dataclass
class SwipeSession:
    """Components sharing one user's Profile for the lifetime of a session."""

    profile: Profile
    ledger: TagAffinityLedger
    dedup: CandidateDeduplicator
    assembler: FeedAssembler
    reconciler: SwipeReconciler
    picks: List[RoomScanPick] = field(default_factory=list)
    last_analysis: Optional[RoomAnalysisResult] = None


class SwipeShopApp:
    """Wires the taste engine to its catalog, model service and profile store."""

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        catalog: CatalogClient | None = None,
        vision_model: VisionModelService | None = None,
        store: ProfileStore | None = None,
    ) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging()

        self.store = store or self._build_store()
        self.catalog = catalog or self._build_catalog()
        self.vision_model = vision_model or self._build_vision_model()
        self.pipeline = RoomAnalysisPipeline(
            self.vision_model, timeout_seconds=self.config.analysis_timeout_seconds
        )
        self.sessions: Dict[str, SwipeSession] = {}

    def _build_store(self) -> ProfileStore:
        if self.config.profile_store_backend.lower() == "sqlite":
            return SQLiteProfileStore(self.config.profile_store_path or "data/profiles.db")
        return JSONProfileStore(self.config.profile_store_path or "data/profiles")

    def _build_catalog(self) -> CatalogClient:
        if self.config.catalog_base_url:
            return HTTPCatalogClient(self.config.catalog_base_url, timeout_seconds=self.config.catalog_timeout_seconds)
        LOGGER.info("No catalog_base_url configured; serving the demo launch set")
        return InMemoryCatalog(demo_items())

    def _build_vision_model(self) -> VisionModelService:
        if self.config.google_api_key:
            return GeminiVisionModel(self.config.google_api_key, self.config.vision_model)
        LOGGER.warning("google_api_key is not set; room scans will run without object detection")
        return StaticVisionModel()

    # Sessions -----------------------------------------------------------

    def start_session(self, user_id: str) -> SwipeSession:
        """Open a session for ``user_id``, restoring the stored profile when present."""

        existing = self.sessions.get(user_id)
        if existing is not None:
            return existing

        profile = self.store.load_profile(user_id) or Profile(user_id=user_id)
        ledger = TagAffinityLedger(profile, store=self.store)
        dedup = CandidateDeduplicator(profile)
        assembler = FeedAssembler(
            self.catalog,
            ledger,
            dedup,
            profile,
            initial_page_size=self.config.initial_page_size,
            refill_page_size=self.config.refill_page_size,
            refill_threshold=self.config.refill_threshold,
        )
        reconciler = SwipeReconciler(profile, ledger, dedup, assembler)
        session = SwipeSession(
            profile=profile, ledger=ledger, dedup=dedup, assembler=assembler, reconciler=reconciler
        )
        reconciler.on_advance = lambda: self._schedule_refill(session)
        self.sessions[user_id] = session
        log_event(LOGGER, logging.INFO, "session_started", user_id=user_id, restored=bool(profile.tag_scores))
        return session

    def session(self, user_id: str) -> SwipeSession:
        try:
            return self.sessions[user_id]
        except KeyError as exc:
            raise SessionNotFound(user_id) from exc

    def _save(self, session: SwipeSession) -> None:
        try:
            self.store.save_profile(session.profile)
        except PersistenceWriteFailed as exc:
            log_event(
                LOGGER,
                logging.WARNING,
                "profile_persist_failed",
                user_id=session.profile.user_id,
                error=str(exc),
            )

    def _schedule_refill(self, session: SwipeSession) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.debug("No running event loop; refill waits for an explicit call")
            return
        session.assembler.maybe_refill(session.profile.interests)

    # Interests and blocked tags ------------------------------------------

    def set_interests(self, user_id: str, interests: Iterable[str]) -> List[str]:
        session = self.session(user_id)
        cleaned = [tag for tag in (normalise_tag(value) for value in interests) if is_interest_id(tag)]
        session.profile.interests[:] = [tag for tag in INTEREST_IDS if tag in cleaned]
        self._save(session)
        return list(session.profile.interests)

    def toggle_interest(self, user_id: str, interest: str) -> List[str]:
        session = self.session(user_id)
        tag = normalise_tag(interest)
        if tag in session.profile.interests:
            session.profile.interests.remove(tag)
        elif is_interest_id(tag):
            session.profile.interests.append(tag)
        else:
            raise ValueError(f"Unknown interest '{interest}'")
        self._save(session)
        return list(session.profile.interests)

    def block_tag(self, user_id: str, tag: str) -> List[str]:
        """Suppress ``tag`` from future pages; the assembled pool is left alone."""

        session = self.session(user_id)
        session.profile.blocked_tags.add(normalise_tag(tag))
        self._save(session)
        return sorted(session.profile.blocked_tags)

    def unblock_tag(self, user_id: str, tag: str) -> List[str]:
        session = self.session(user_id)
        session.profile.blocked_tags.discard(normalise_tag(tag))
        self._save(session)
        return sorted(session.profile.blocked_tags)

    # Feed -----------------------------------------------------------------

    async def load_feed(self, user_id: str) -> Dict[str, Any]:
        session = self.session(user_id)
        with operation_context("app:load_feed"):
            await session.assembler.load_initial(session.profile.interests)
        return self.snapshot(user_id)

    async def refill_feed(self, user_id: str) -> int:
        session = self.session(user_id)
        with operation_context("app:refill_feed"):
            return await session.assembler.refill(session.profile.interests)

    def decide(self, user_id: str, direction: Direction | str, sub_action: SubAction | str | None = None) -> DecisionOutcome:
        session = self.session(user_id)
        outcome = session.reconciler.decide(direction, sub_action)
        if outcome.record is not None:
            self._save(session)
        return outcome

    def resolve(self, user_id: str, sub_action: SubAction | str) -> DecisionOutcome:
        session = self.session(user_id)
        outcome = session.reconciler.resolve(sub_action)
        self._save(session)
        return outcome

    def cancel_like(self, user_id: str) -> DecisionOutcome:
        return self.session(user_id).reconciler.cancel_like()

    def undo(self, user_id: str) -> DecisionOutcome:
        session = self.session(user_id)
        outcome = session.reconciler.undo()
        if outcome.record is not None:
            self._save(session)
        return outcome

    # Room scan ------------------------------------------------------------

    async def scan(
        self, user_id: str, image: ImageInput | None = None, text: str = ""
    ) -> Tuple[RoomAnalysisResult, List[RoomScanPick]]:
        """Analyse a room, fold the result into the profile and build picks.

        Nothing touches the ledger or interests unless the analysis completes.
        """

        session = self.session(user_id)
        with operation_context("app:scan"):
            analysis = await self.pipeline.analyze(image=image, text=text)
            self.apply_analysis(session, analysis)
            pending = session.reconciler.pending_like
            candidates = [
                item
                for item in session.assembler.pool
                if not session.dedup.seen(item.item_id) and (pending is None or item.item_id != pending.item_id)
            ]
            session.picks = build_picks(candidates, analysis, session.ledger, session.profile.saved_ids())
            session.last_analysis = analysis
            self._save(session)
            log_event(LOGGER, logging.INFO, "scan_picks_built", pick_count=len(session.picks))
        return analysis, list(session.picks)

    def apply_analysis(self, session: SwipeSession, analysis: RoomAnalysisResult) -> None:
        boosted = merge_unique(analysis.recommended_tags, analysis.vibe_tags)
        if boosted:
            session.ledger.adjust_tags(boosted, SCAN_BOOST_DELTA)
        if analysis.avoid_tags:
            session.ledger.adjust_tags(analysis.avoid_tags, SCAN_AVOID_DELTA)
        for category in analysis.recommended_categories:
            if is_interest_id(category) and category not in session.profile.interests:
                session.profile.interests.append(category)

    def pick_action(self, user_id: str, item_id: str, action: str) -> List[RoomScanPick]:
        """Save, bag or dismiss one scan pick and return the remaining picks."""

        session = self.session(user_id)
        pick = next((entry for entry in session.picks if entry.item.item_id == item_id), None)
        if pick is None:
            raise UnknownPick(item_id)
        pending = session.reconciler.pending_like
        if pending is not None and pending.item_id == item_id:
            raise InvalidDecisionError("This item is waiting for save or bag in the feed; resolve or cancel it first")
        if action != "dismiss" and session.dedup.seen(item_id):
            raise InvalidDecisionError("This item was already decided in the feed")

        if action == "dismiss":
            log_event(LOGGER, logging.INFO, "scan_pick_dismissed", item_id=item_id)
        else:
            sub = SubAction(action)
            if sub is SubAction.NONE:
                raise ValueError("A pick must be saved, bagged or dismissed")
            session.reconciler.apply_like(pick.item, sub, DecisionSource.SCAN)
            session.assembler.drop_upcoming(item_id)
            self._save(session)
        session.picks = [entry for entry in session.picks if entry.item.item_id != item_id]
        return list(session.picks)

    def scan_again(self, user_id: str) -> None:
        session = self.session(user_id)
        session.picks = []
        session.last_analysis = None

    # Profile --------------------------------------------------------------

    def reset(self, user_id: str) -> None:
        """Forget everything learned for ``user_id`` and persist the empty profile."""

        session = self.session(user_id)
        session.reconciler.cancel_like()
        session.profile.reset()
        session.assembler.clear()
        session.picks = []
        session.last_analysis = None
        self._save(session)
        log_event(LOGGER, logging.INFO, "profile_reset", user_id=user_id)

    def persona(self, user_id: str) -> TastePersona:
        return derive_persona(self.session(user_id).ledger)

    def cart_subtotal(self, user_id: str) -> float:
        return round(sum(item.price for item in self.session(user_id).profile.cart), 2)

    def snapshot(self, user_id: str, preview: int = FEED_PREVIEW_SIZE) -> Dict[str, Any]:
        session = self.session(user_id)
        assembler = session.assembler
        current = assembler.current()
        pending = session.reconciler.pending_like
        return {
            "status": assembler.status.value,
            "index": assembler.index,
            "remaining": assembler.remaining,
            "has_more": assembler.has_more,
            "refill_in_flight": assembler.refill_in_flight,
            "current": (
                {"item": current.to_dict(), "match_percent": session.ledger.match_percent(current)}
                if current is not None
                else None
            ),
            "upcoming": [item.to_dict() for item in assembler.upcoming(preview)],
            "pending_like": pending.item_id if pending is not None else None,
            "last_error": str(assembler.last_error) if assembler.last_error else None,
            "interests": list(session.profile.interests),
            "wishlist_count": len(session.profile.wishlist),
            "cart_count": len(session.profile.cart),
            "cart_subtotal": self.cart_subtotal(user_id),
        }


__all__ = ["SwipeShopApp", "SwipeSession", "SessionNotFound", "UnknownPick"]
