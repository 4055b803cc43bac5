"""Shared fixtures: small catalogs, profiles and a fully wired engine."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest

from logic.dedup import CandidateDeduplicator
from logic.feed_assembler import FeedAssembler
from logic.ledger import TagAffinityLedger
from logic.reconciler import SwipeReconciler
from memory.profile import Profile
from memory.profile_store import JSONProfileStore
from models.item import Item
from swipe_app.config import AppConfig
from tools.catalog_client import InMemoryCatalog


def _make_item(item_id: str, tags=None, category: str = "general", priority: bool = False, price: float = 10.0) -> Item:
    return Item(item_id=item_id, name=f"Item {item_id}", category=category, tags=list(tags or []), priority=priority, price=price)


@pytest.fixture()
def make_item() -> Callable[..., Item]:
    return _make_item


@pytest.fixture()
def numbered_items() -> List[Item]:
    return [_make_item(f"item-{index:02d}", tags=["cozy"] if index % 2 else ["modern"]) for index in range(12)]


@pytest.fixture()
def profile() -> Profile:
    return Profile(user_id="user-1")


@pytest.fixture()
def store(tmp_path: Path) -> JSONProfileStore:
    return JSONProfileStore(base_dir=tmp_path / "profiles")


@pytest.fixture()
def engine(profile: Profile, numbered_items: List[Item]):
    """Ledger, dedup set, assembler and reconciler sharing one profile."""

    ledger = TagAffinityLedger(profile)
    dedup = CandidateDeduplicator(profile)
    assembler = FeedAssembler(InMemoryCatalog(numbered_items), ledger, dedup, profile, initial_page_size=5)
    reconciler = SwipeReconciler(profile, ledger, dedup, assembler)
    return ledger, dedup, assembler, reconciler


@pytest.fixture()
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(profile_store_path=str(tmp_path / "profiles"), analysis_timeout_seconds=5.0)
