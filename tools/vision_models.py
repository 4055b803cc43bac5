"""Object detection and scene classification model services."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from PIL import Image
from pydantic import BaseModel, ValidationError

from models.room_analysis import Classification, Detection
from tools.observability import instrument_tool

LOGGER = logging.getLogger(__name__)

DETECTION_LABELS = [
    "bed",
    "couch",
    "sofa",
    "chair",
    "dining table",
    "table",
    "potted plant",
    "lamp",
    "rug",
    "mirror",
    "tv",
    "toilet",
    "sink",
    "book",
    "vase",
    "clock",
    "wall art",
]


class ModelUnavailableError(RuntimeError):
    """Raised when the inference service cannot serve requests at all."""


class ModelInferenceError(RuntimeError):
    """Raised when a single inference call fails."""


class _LabelScore(BaseModel):
    label: str
    confidence: float = 0.0


class _LabelList(BaseModel):
    labels: List[_LabelScore] = []


class VisionModelService(ABC):
    """Swappable detection/classification backend."""

    def load(self) -> None:
        """Prepare the models; raise :class:`ModelUnavailableError` when impossible."""

    @abstractmethod
    def detect(self, image: Image.Image) -> List[Detection]:
        """Return labelled detections with confidences."""

    @abstractmethod
    def classify(self, image: Image.Image) -> List[Classification]:
        """Return whole-image labels, best first."""


class GeminiVisionModel(VisionModelService):
    """Vision service backed by a Gemini multimodal model.

    Gemini answers with JSON constrained to :data:`DETECTION_LABELS`, which
    keeps the downstream rule tables independent of the model vocabulary.
    """

    def __init__(self, api_key: Optional[str], model_name: str, labels: Iterable[str] = DETECTION_LABELS) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.labels = list(labels)
        self._model: Optional[genai.GenerativeModel] = None

    def load(self) -> None:
        if self._model is not None:
            return
        if not self.api_key:
            raise ModelUnavailableError("google_api_key is not configured")
        genai.configure(api_key=self.api_key)
        self._model = genai.GenerativeModel(self.model_name)

    def _ask(self, prompt: str, image: Image.Image) -> List[_LabelScore]:
        self.load()
        try:
            response = self._model.generate_content(
                [prompt, image],
                generation_config={"response_mime_type": "application/json"},
            )
        except (
            google_exceptions.ServiceUnavailable,
            google_exceptions.Unauthenticated,
            google_exceptions.PermissionDenied,
        ) as exc:
            raise ModelUnavailableError(f"Gemini unavailable: {exc}") from exc
        except google_exceptions.GoogleAPIError as exc:
            raise ModelInferenceError(f"Gemini request failed: {exc}") from exc

        try:
            payload = json.loads((response.text or "").strip() or "{}")
            if isinstance(payload, list):
                payload = {"labels": payload}
            return _LabelList.model_validate(payload).labels
        except (ValueError, ValidationError) as exc:
            LOGGER.error("Gemini payload schema validation failed", exc_info=exc)
            raise ModelInferenceError("Gemini returned malformed labels") from exc

    @instrument_tool("detect_objects")
    def detect(self, image: Image.Image) -> List[Detection]:
        prompt = (
            "List the objects visible in this room photo. Use only these labels: "
            f"{', '.join(self.labels)}. Answer as JSON "
            '{"labels": [{"label": str, "confidence": float between 0 and 1}]}.'
        )
        allowed = set(self.labels)
        return [
            Detection(label=entry.label.strip().lower(), confidence=entry.confidence)
            for entry in self._ask(prompt, image)
            if entry.label.strip().lower() in allowed
        ]

    @instrument_tool("classify_scene")
    def classify(self, image: Image.Image) -> List[Classification]:
        prompt = (
            "Give up to three short labels describing this room scene, best first. Answer as JSON "
            '{"labels": [{"label": str, "confidence": float between 0 and 1}]}.'
        )
        return [Classification(label=entry.label, confidence=entry.confidence) for entry in self._ask(prompt, image)]


class StaticVisionModel(VisionModelService):
    """Offline deterministic model service for demos and tests."""

    def __init__(
        self,
        detections: Iterable[Detection] = (),
        classifications: Iterable[Classification] = (),
    ) -> None:
        self.detections = list(detections)
        self.classifications = list(classifications)

    def detect(self, image: Image.Image) -> List[Detection]:
        LOGGER.info("Returning static detections", extra={"count": len(self.detections)})
        return list(self.detections)

    def classify(self, image: Image.Image) -> List[Classification]:
        return list(self.classifications)


__all__ = [
    "DETECTION_LABELS",
    "ModelUnavailableError",
    "ModelInferenceError",
    "VisionModelService",
    "GeminiVisionModel",
    "StaticVisionModel",
]
