"""Room-image analysis pipeline.

Stages run strictly in order: downscale, palette, detection, classification,
then the rule tables in :mod:`logic.scan_rules` and a one-sentence summary.
Image work runs in a worker thread so the event loop keeps serving feed
operations while a scan is in progress.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from PIL import Image

from logic.scan_rules import (
    AVOID_RULES,
    OBJECT_CATEGORY_RULES,
    OBJECT_TAG_RULES,
    PALETTE_VIBE_RULES,
    ROOM_TYPE_RULES,
    TEXT_CATEGORY_RULES,
    TEXT_TAG_RULES,
    TEXT_VIBE_RULES,
    ScanSignals,
    collect,
    first_match,
    merge_unique,
    product_ideas,
)
from models.room_analysis import RoomAnalysisResult
from swipe_app.logging_config import get_logger, log_event, operation_context
from tools.image_ops import MAX_SIDE, ImageInput, downscale, extract_palette, load_image
from tools.vision_models import ModelUnavailableError, VisionModelService

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 25.0
DETECTION_CONFIDENCE = 0.45


class AnalysisTimeout(TimeoutError):
    """Raised when a scan does not finish inside its time budget."""


class AnalysisModelUnavailable(RuntimeError):
    """Raised when the model service cannot run at all."""


@dataclass
class ImageSignals:
    palette: List[str] = field(default_factory=list)
    objects: List[str] = field(default_factory=list)
    scene_labels: List[str] = field(default_factory=list)


def compose_summary(
    room_type: Optional[str],
    vibes: Sequence[str],
    categories: Sequence[str],
    tags: Sequence[str],
) -> str:
    """Build one readable sentence out of the inferred room, vibe and recommendations."""

    room = room_type.replace("_", " ") if room_type else "space"
    if vibes:
        sentence = f"Your {room} reads {' and '.join(vibes[:2])}"
    else:
        sentence = f"Your {room} is ready for a refresh"

    focus = [category.replace("_", " ") for category in categories[:3]]
    accents = [tag.replace("-", " ").replace("_", " ") for tag in tags[:2]]
    if focus:
        sentence += f"; start with {', '.join(focus)}"
        if accents:
            sentence += f" and lean into {' and '.join(accents)}"
    elif accents:
        sentence += f"; lean into {' and '.join(accents)}"
    return sentence + "."


class RoomAnalysisPipeline:
    """Turns an optional room photo plus free text into a :class:`RoomAnalysisResult`."""

    def __init__(
        self,
        models: VisionModelService,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        confidence_threshold: float = DETECTION_CONFIDENCE,
        max_side: int = MAX_SIDE,
    ) -> None:
        self.models = models
        self.timeout_seconds = timeout_seconds
        self.confidence_threshold = confidence_threshold
        self.max_side = max_side

    async def analyze(
        self,
        image: ImageInput | None = None,
        text: str = "",
        timeout_seconds: float | None = None,
    ) -> RoomAnalysisResult:
        """Run every stage under one overall timeout.

        Raises :class:`AnalysisTimeout` when the budget runs out and
        :class:`AnalysisModelUnavailable` when the model service is down.
        """

        budget = self.timeout_seconds if timeout_seconds is None else timeout_seconds
        with operation_context("room_scan", has_image=image is not None):
            try:
                return await asyncio.wait_for(self._run(image, text or ""), timeout=budget)
            except asyncio.TimeoutError as exc:
                log_event(LOGGER, logging.WARNING, "room_scan_timeout", timeout_seconds=budget)
                raise AnalysisTimeout(f"Room scan exceeded {budget}s") from exc
            except ModelUnavailableError as exc:
                log_event(LOGGER, logging.ERROR, "room_scan_model_unavailable", error=str(exc))
                raise AnalysisModelUnavailable(str(exc)) from exc

    async def _run(self, image: ImageInput | None, text: str) -> RoomAnalysisResult:
        has_image = image is not None
        if not has_image and not text.strip():
            return RoomAnalysisResult()

        signals = ImageSignals()
        if has_image:
            signals = await asyncio.to_thread(self._image_stages, image)

        result = self.infer(signals, text, has_image)
        log_event(
            LOGGER,
            logging.INFO,
            "room_scan_completed",
            room_type=result.room_type,
            object_count=len(result.objects),
            vibe_tags=result.vibe_tags,
            recommended_categories=result.recommended_categories,
        )
        return result

    def _image_stages(self, source: ImageInput) -> ImageSignals:
        image = downscale(load_image(source), self.max_side)
        palette = extract_palette(image)
        self.models.load()
        objects = self._detect(image)
        scene_labels = self._classify(image)
        return ImageSignals(palette=palette, objects=objects, scene_labels=scene_labels)

    def _detect(self, image: Image.Image) -> List[str]:
        try:
            detections = self.models.detect(image)
        except ModelUnavailableError:
            raise
        except Exception as exc:  # noqa: BLE001 - a failed stage degrades to no detections
            LOGGER.warning("Object detection failed; continuing without objects", exc_info=exc)
            return []
        labels: List[str] = []
        for detection in detections:
            if detection.confidence >= self.confidence_threshold and detection.label not in labels:
                labels.append(detection.label)
        return labels

    def _classify(self, image: Image.Image) -> List[str]:
        try:
            classifications = self.models.classify(image)
        except ModelUnavailableError:
            raise
        except Exception as exc:  # noqa: BLE001 - a failed stage degrades to no scene labels
            LOGGER.warning("Scene classification failed; continuing without labels", exc_info=exc)
            return []
        return [entry.label for entry in classifications]

    @staticmethod
    def infer(signals: ImageSignals, text: str, has_image: bool) -> RoomAnalysisResult:
        """Apply the rule tables to already extracted image signals and text."""

        scan = ScanSignals.build(signals.objects, signals.palette, text, has_image)
        room_type = first_match(ROOM_TYPE_RULES, scan)
        categories = merge_unique(collect(OBJECT_CATEGORY_RULES, scan), collect(TEXT_CATEGORY_RULES, scan))
        tags = merge_unique(
            [room_type] if room_type else [],
            collect(OBJECT_TAG_RULES, scan),
            collect(TEXT_TAG_RULES, scan),
        )
        vibes = merge_unique(collect(PALETTE_VIBE_RULES, scan), collect(TEXT_VIBE_RULES, scan))
        avoid = collect(AVOID_RULES, scan)
        return RoomAnalysisResult(
            room_type=room_type,
            palette=list(signals.palette),
            objects=list(signals.objects),
            vibe_tags=vibes,
            recommended_categories=categories,
            recommended_tags=tags,
            avoid_tags=avoid,
            summary=compose_summary(room_type, vibes, categories, tags),
            product_ideas=product_ideas(scan, room_type, categories, tags),
            scene_labels=list(signals.scene_labels),
            image_analyzed=has_image,
        )


__all__ = [
    "RoomAnalysisPipeline",
    "AnalysisTimeout",
    "AnalysisModelUnavailable",
    "compose_summary",
    "ImageSignals",
    "DETECTION_CONFIDENCE",
]
