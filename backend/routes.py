"""Rotas da mini-app: visualizações de cartões e evento "app fechada"."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from backend.auth import require_api_key
from backend.bot_updates import handle_update
from backend.engagement_service import EngagementService
from backend.errors import EngagementError, StorageError
from backend.request_body import JsonBody, extract_user_id, read_body
from backend.sanitize import parse_user_id

router = APIRouter(dependencies=[Depends(require_api_key)])


def get_service(request: Request) -> EngagementService:
    return request.app.state.runtime.service


def _error(status: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status, content={"ok": False, "error": message})


# --- Schemas ---
class TrackCardViewIn(BaseModel):
    card_id: str | None = None
    user_id: Any = None


# --- Rotas ---
@router.post("/track-card-view")
async def track_card_view(body: TrackCardViewIn, service: EngagementService = Depends(get_service)):
    """Regista uma visualização; devolve o count do par após o incremento."""
    user_id = parse_user_id(body.user_id)
    card_id = (body.card_id or "").strip()
    if not card_id or user_id is None:
        logger.warning(f"trackCardView: missing required fields card_id={body.card_id!r} user_id={body.user_id!r}")
        return _error(400, "card_id and user_id are required")
    try:
        view_count = await service.record_view(user_id, card_id)
    except ValueError as e:
        return _error(400, str(e))
    except StorageError as e:
        logger.error(f"trackCardView failed user={user_id} card={card_id}: {e}")
        return _error(500, str(e))
    logger.info(f"trackCardView user={user_id} card={card_id} view_count={view_count}")
    return {"ok": True, "view_count": view_count}


@router.get("/viewed-cards")
async def viewed_cards(user_id: str | None = None, service: EngagementService = Depends(get_service)):
    if not user_id:
        return _error(400, "user_id query parameter is required")
    uid = parse_user_id(user_id)
    if uid is None:
        return _error(400, "user_id must be a positive number")
    try:
        ids = await service.get_viewed_item_ids(uid)
    except StorageError as e:
        logger.error(f"getViewedCards failed user={uid}: {e}")
        return _error(500, str(e))
    return {"ok": True, "data": sorted(ids)}


@router.get("/card-view-count")
async def card_view_count(
    user_id: str | None = None,
    card_id: str | None = None,
    service: EngagementService = Depends(get_service),
):
    uid = parse_user_id(user_id)
    if uid is None or not (card_id or "").strip():
        return _error(400, "card_id and a positive user_id are required")
    try:
        count = await service.get_item_view_count(uid, card_id)
    except ValueError as e:
        return _error(400, str(e))
    except StorageError as e:
        logger.error(f"cardViewCount failed user={uid} card={card_id}: {e}")
        return _error(500, str(e))
    return {"ok": True, "view_count": count}


@router.post("/on-app-close")
async def on_app_close(request: Request, service: EngagementService = Depends(get_service)):
    """
    Mini-app fechada (sendBeacon). Responde logo; a notificação de progresso corre em background
    e uma falha nela nunca afeta esta resposta.
    """
    body = await read_body(request)
    user_id = extract_user_id(body)
    if user_id is None:
        logger.warning(f"onAppClose without valid user_id (body={type(body).__name__})")
        return _error(400, "user_id is required and must be a positive number")
    service.notify_in_background(user_id)
    return {"ok": True}


@router.post("/max-webhook")
async def max_webhook(request: Request, service: EngagementService = Depends(get_service)):
    """Updates do bot MAX. Erros dos handlers ficam no log e a resposta continua 200."""
    body = await read_body(request)
    update = body.data if isinstance(body, JsonBody) and isinstance(body.data, dict) else None
    if update is None:
        return _error(400, "update must be a JSON object")
    runtime = request.app.state.runtime
    try:
        handled = await handle_update(service, runtime.channel, update, runtime.config.max.web_app_url)
    except (EngagementError, ValueError) as e:
        logger.error(f"max webhook update failed ({update.get('update_type')}): {e}")
        handled = "failed"
    return {"ok": True, "handled": handled}
