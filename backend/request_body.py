"""Leitura do corpo do pedido como variante etiquetada: JSON | campos de formulário | bytes crus.

O evento "app fechada" chega por navigator.sendBeacon: pode vir como JSON, FormData (multipart),
urlencoded ou um Blob sem content-type. Em vez de cadeias de try/except, o corpo é lido uma vez e
classificado; extract_user_id trata cada variante.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import parse_qs

from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from backend.sanitize import parse_user_id


@dataclass(frozen=True)
class JsonBody:
    data: Any


@dataclass(frozen=True)
class FormBody:
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawBody:
    raw: bytes = b""
    content_type: str = ""


RequestBody = Union[JsonBody, FormBody, RawBody]


def _try_json(raw: bytes) -> Any | None:
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def classify_body(content_type: str, raw: bytes) -> RequestBody:
    """Classificação sem I/O para corpos não-multipart (JSON, urlencoded, texto/blob)."""
    ct = (content_type or "").lower()
    if "application/json" in ct or ct in ("", "text/plain") or ct.startswith("text/plain;"):
        data = _try_json(raw)
        if data is not None:
            return JsonBody(data)
        return RawBody(raw, ct)
    if "application/x-www-form-urlencoded" in ct:
        try:
            parsed = parse_qs(raw.decode("utf-8"), keep_blank_values=True)
        except UnicodeDecodeError:
            return RawBody(raw, ct)
        return FormBody({k: v[0] for k, v in parsed.items() if v})
    # Content-type desconhecido (ex.: application/octet-stream de um Blob)
    data = _try_json(raw)
    if data is not None:
        return JsonBody(data)
    return RawBody(raw, ct)


async def read_body(request: Request) -> RequestBody:
    content_type = request.headers.get("content-type", "")
    raw = await request.body()
    if "multipart/form-data" not in content_type.lower():
        return classify_body(content_type, raw)
    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException) as e:
        logger.warning(f"multipart body could not be parsed: {e}")
        return classify_body("", raw)
    return FormBody({k: v for k, v in form.items() if isinstance(v, str)})


def extract_user_id(body: RequestBody) -> int | None:
    """user_id positivo de qualquer variante; None se ausente/inválido."""
    if isinstance(body, JsonBody):
        if isinstance(body.data, dict):
            return parse_user_id(body.data.get("user_id"))
        return None
    if isinstance(body, FormBody):
        return parse_user_id(body.fields.get("user_id"))
    if isinstance(body, RawBody):
        # Último recurso: "user_id=123" cru
        try:
            parsed = parse_qs(body.raw.decode("utf-8"))
        except UnicodeDecodeError:
            return None
        values = parsed.get("user_id")
        return parse_user_id(values[0]) if values else None
    return None
