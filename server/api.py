"""FastAPI server exposing the taste engine for deployment."""

from __future__ import annotations

from typing import Any, Dict, get_args

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from logic.reconciler import DecisionOutcome, InvalidDecisionError
from logic.room_analysis import AnalysisModelUnavailable, AnalysisTimeout
from logic.validation import (
    BlockedTagRequest,
    DecisionRequest,
    InterestsRequest,
    PickAction,
    ResolveRequest,
    ScanRequest,
    SessionRequest,
    validation_failure,
)
from swipe_app.app import SessionNotFound, SwipeShopApp, UnknownPick
from swipe_app.logging_config import configure_logging
from tools.catalog_client import CatalogFetchFailed
from tools.image_ops import InvalidImageError, decode_base64_image

configure_logging()


def _outcome(outcome: DecisionOutcome) -> Dict[str, Any]:
    return {
        "state": outcome.state.value,
        "item": outcome.item.to_dict() if outcome.item is not None else None,
        "record": outcome.record.to_dict() if outcome.record is not None else None,
    }


def create_app(shop: SwipeShopApp | None = None) -> FastAPI:
    """Build the FastAPI app around a :class:`SwipeShopApp` instance."""

    shop_app = shop or SwipeShopApp()
    api = FastAPI(title="SwipeShop Taste Engine", version="0.1.0")
    api.state.shop = shop_app

    @api.exception_handler(SessionNotFound)
    async def _session_not_found(request: Request, exc: SessionNotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "No open session for this user"})

    @api.exception_handler(UnknownPick)
    async def _unknown_pick(request: Request, exc: UnknownPick) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": "Item is not in the current picks"})

    @api.exception_handler(InvalidDecisionError)
    async def _invalid_decision(request: Request, exc: InvalidDecisionError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @api.exception_handler(CatalogFetchFailed)
    async def _catalog_failed(request: Request, exc: CatalogFetchFailed) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @api.exception_handler(AnalysisTimeout)
    async def _analysis_timeout(request: Request, exc: AnalysisTimeout) -> JSONResponse:
        return JSONResponse(status_code=504, content={"detail": str(exc)})

    @api.exception_handler(AnalysisModelUnavailable)
    async def _model_unavailable(request: Request, exc: AnalysisModelUnavailable) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @api.exception_handler(InvalidImageError)
    async def _invalid_image(request: Request, exc: InvalidImageError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @api.exception_handler(RequestValidationError)
    async def _request_invalid(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content=validation_failure("Invalid request payload", exc))

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "swipeshop-taste-engine",
            "environment": shop_app.config.environment or "local",
            "catalog": type(shop_app.catalog).__name__,
            "vision_model": type(shop_app.vision_model).__name__,
        }

    @api.post("/sessions")
    async def create_session(request: SessionRequest) -> dict:
        """Open a session, restoring the stored profile when one exists."""

        session = shop_app.start_session(request.user_id)
        return {"user_id": request.user_id, "interests": list(session.profile.interests)}

    @api.put("/sessions/{user_id}/interests")
    async def set_interests(user_id: str, request: InterestsRequest) -> dict:
        return {"interests": shop_app.set_interests(user_id, request.interests)}

    @api.post("/sessions/{user_id}/feed/load")
    async def load_feed(user_id: str) -> dict:
        return await shop_app.load_feed(user_id)

    @api.post("/sessions/{user_id}/feed/refill")
    async def refill_feed(user_id: str) -> dict:
        appended = await shop_app.refill_feed(user_id)
        return {"appended": appended, **shop_app.snapshot(user_id)}

    @api.get("/sessions/{user_id}/feed")
    async def get_feed(user_id: str) -> dict:
        return shop_app.snapshot(user_id)

    @api.post("/sessions/{user_id}/decisions")
    async def decide(user_id: str, request: DecisionRequest) -> dict:
        return _outcome(shop_app.decide(user_id, request.direction, request.sub_action))

    @api.post("/sessions/{user_id}/decisions/resolve")
    async def resolve(user_id: str, request: ResolveRequest) -> dict:
        return _outcome(shop_app.resolve(user_id, request.sub_action))

    @api.post("/sessions/{user_id}/undo")
    async def undo(user_id: str) -> dict:
        return _outcome(shop_app.undo(user_id))

    @api.post("/sessions/{user_id}/blocked-tags")
    async def blocked_tags(user_id: str, request: BlockedTagRequest) -> dict:
        if request.blocked:
            tags = shop_app.block_tag(user_id, request.tag)
        else:
            tags = shop_app.unblock_tag(user_id, request.tag)
        return {"blocked_tags": tags}

    @api.post("/sessions/{user_id}/scan")
    async def scan(user_id: str, request: ScanRequest) -> dict:
        image = decode_base64_image(request.image_base64) if request.image_base64 else None
        analysis, picks = await shop_app.scan(user_id, image=image, text=request.text)
        return {"analysis": analysis.to_dict(), "picks": [pick.to_dict() for pick in picks]}

    @api.post("/sessions/{user_id}/scan/reset")
    async def scan_again(user_id: str) -> dict:
        shop_app.scan_again(user_id)
        return {"picks": []}

    @api.post("/sessions/{user_id}/picks/{item_id}/{action}")
    async def pick_action(user_id: str, item_id: str, action: str) -> dict:
        if action not in get_args(PickAction):
            raise HTTPException(status_code=422, detail=f"Unsupported pick action '{action}'")
        remaining = shop_app.pick_action(user_id, item_id, action)
        return {"picks": [pick.to_dict() for pick in remaining]}

    @api.get("/sessions/{user_id}/persona")
    async def persona(user_id: str) -> dict:
        return shop_app.persona(user_id).to_dict()

    @api.post("/sessions/{user_id}/reset")
    async def reset(user_id: str) -> dict:
        shop_app.reset(user_id)
        return shop_app.snapshot(user_id)

    return api


def get_app() -> FastAPI:
    """Expose a FastAPI instance for ASGI servers."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
