"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.item import Item, item_from_record
from models.room_analysis import RoomAnalysisResult, RoomScanPick

__all__ = ["Item", "item_from_record", "RoomAnalysisResult", "RoomScanPick"]
