"""Applies swipe decisions to the ledger, dedup set and undo stack.

Per item the flow is ``PENDING -> DECIDED(pass)`` or
``PENDING -> AWAITING_SUB_ACTION -> RESOLVED(save | bag)``. A like only touches
the ledger and dedup set once its save/bag choice is made, so backing out of
the choice (``cancel_like``) returns the item to ``PENDING`` with no side
effects. ``undo`` pops one record and applies the exact inverse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from logic.dedup import CandidateDeduplicator
from logic.feed_assembler import FeedAssembler
from logic.ledger import LIKE_DELTA, PASS_DELTA, UNDO_LIKE_DELTA, UNDO_PASS_DELTA, TagAffinityLedger
from memory.profile import Profile
from models.decision import DecisionRecord, DecisionSource, Direction, SubAction
from models.item import Item
from swipe_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)


class InvalidDecisionError(ValueError):
    """Raised when a decision does not fit the current state."""


class DecisionState(str, Enum):
    PENDING = "pending"
    DECIDED_PASS = "decided_pass"
    AWAITING_SUB_ACTION = "awaiting_sub_action"
    RESOLVED_SAVE = "resolved_save"
    RESOLVED_BAG = "resolved_bag"


@dataclass(frozen=True)
class DecisionOutcome:
    """What a call to the reconciler did."""

    state: DecisionState
    item: Optional[Item]
    record: Optional[DecisionRecord] = None


class SwipeReconciler:
    """Serialises every feed decision and its undo."""

    def __init__(
        self,
        profile: Profile,
        ledger: TagAffinityLedger,
        dedup: CandidateDeduplicator,
        assembler: FeedAssembler,
        on_advance: Optional[Callable[[], None]] = None,
    ) -> None:
        self.profile = profile
        self.ledger = ledger
        self.dedup = dedup
        self.assembler = assembler
        self.on_advance = on_advance
        self._pending_like: Optional[Item] = None

    @property
    def pending_like(self) -> Optional[Item]:
        return self._pending_like

    @property
    def state(self) -> DecisionState:
        return DecisionState.AWAITING_SUB_ACTION if self._pending_like else DecisionState.PENDING

    def decide(self, direction: Direction | str, sub_action: SubAction | str | None = None) -> DecisionOutcome:
        """Decide on the item at the read position.

        A like without a sub-action opens the save/bag choice; a like with one
        resolves immediately.
        """

        direction = Direction(direction)
        sub = SubAction(sub_action) if sub_action is not None else SubAction.NONE
        if self._pending_like is not None:
            raise InvalidDecisionError("A like is waiting for save or bag; resolve or cancel it first")

        item = self.assembler.current()
        if item is None:
            return DecisionOutcome(state=DecisionState.PENDING, item=None)

        if direction is Direction.PASS:
            if sub is not SubAction.NONE:
                raise InvalidDecisionError("A pass cannot carry a save or bag action")
            return self._apply_pass(item)

        self._pending_like = item
        if sub is SubAction.NONE:
            log_event(LOGGER, logging.INFO, "like_pending", item_id=item.item_id)
            return DecisionOutcome(state=DecisionState.AWAITING_SUB_ACTION, item=item)
        return self.resolve(sub)

    def resolve(self, sub_action: SubAction | str) -> DecisionOutcome:
        """Complete a pending like with ``save`` or ``bag``."""

        sub = SubAction(sub_action)
        item = self._pending_like
        if item is None:
            raise InvalidDecisionError("No like is waiting for a save or bag choice")
        if sub is SubAction.NONE:
            raise InvalidDecisionError("A like must resolve to save or bag")

        self._pending_like = None
        record = self.apply_like(item, sub, DecisionSource.FEED)
        log_event(LOGGER, logging.INFO, "swipe", item_id=item.item_id, direction=Direction.LIKE.value)
        self._advance()
        state = DecisionState.RESOLVED_SAVE if sub is SubAction.SAVE else DecisionState.RESOLVED_BAG
        return DecisionOutcome(state=state, item=item, record=record)

    def cancel_like(self) -> DecisionOutcome:
        """Back out of the save/bag choice; the item stays at the read position."""

        item = self._pending_like
        self._pending_like = None
        return DecisionOutcome(state=DecisionState.PENDING, item=item)

    def apply_like(self, item: Item, sub_action: SubAction, source: DecisionSource) -> DecisionRecord:
        """Record a resolved like for ``item`` without touching the read position."""

        self.ledger.adjust(item, LIKE_DELTA)
        self.dedup.mark(item.item_id)
        target = self.profile.wishlist if sub_action is SubAction.SAVE else self.profile.cart
        if all(existing.item_id != item.item_id for existing in target):
            target.append(item)
        record = DecisionRecord(item=item, direction=Direction.LIKE, sub_action=sub_action, source=source)
        self.profile.undo_stack.append(record)
        log_event(
            LOGGER,
            logging.INFO,
            "wishlist_add" if sub_action is SubAction.SAVE else "cart_add",
            item_id=item.item_id,
            source=source.value,
        )
        return record

    def undo(self) -> DecisionOutcome:
        """Reverse the most recent decision; a no-op on an empty stack.

        While a save/bag choice is open, undo only cancels that choice.
        """

        if self._pending_like is not None:
            return self.cancel_like()
        if not self.profile.undo_stack:
            return DecisionOutcome(state=DecisionState.PENDING, item=None)

        record = self.profile.undo_stack.pop()
        item = record.item
        if record.direction is Direction.PASS:
            self.ledger.adjust(item, UNDO_PASS_DELTA)
        else:
            self.ledger.adjust(item, UNDO_LIKE_DELTA)
            target = self.profile.wishlist if record.sub_action is SubAction.SAVE else self.profile.cart
            target[:] = [existing for existing in target if existing.item_id != item.item_id]
        self.dedup.unmark(item.item_id)
        if record.source is DecisionSource.FEED:
            self.assembler.rewind()
        log_event(
            LOGGER,
            logging.INFO,
            "undo",
            item_id=item.item_id,
            direction=record.direction.value,
            sub_action=record.sub_action.value,
        )
        return DecisionOutcome(state=DecisionState.PENDING, item=item, record=record)

    def _apply_pass(self, item: Item) -> DecisionOutcome:
        self.ledger.adjust(item, PASS_DELTA)
        self.dedup.mark(item.item_id)
        record = DecisionRecord(item=item, direction=Direction.PASS)
        self.profile.undo_stack.append(record)
        log_event(LOGGER, logging.INFO, "swipe", item_id=item.item_id, direction=Direction.PASS.value)
        self._advance()
        return DecisionOutcome(state=DecisionState.DECIDED_PASS, item=item, record=record)

    def _advance(self) -> None:
        self.assembler.advance()
        if self.on_advance is not None:
            self.on_advance()


__all__ = ["SwipeReconciler", "DecisionState", "DecisionOutcome", "InvalidDecisionError"]
