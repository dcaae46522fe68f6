"""Autenticação da API: API key opcional via header X-API-Key.

Se api.secret_key (config) / API_SECRET_KEY (env) não estiver definido, os endpoints ficam acessíveis
(desenvolvimento e a mini-app pública). Em produção atrás de proxy, definir e enviar X-API-Key.
"""

from typing import Annotated

from fastapi import Header, HTTPException, Request


def require_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """Dependency: exige X-API-Key igual ao segredo configurado quando este está definido."""
    secret = getattr(request.app.state, "api_secret_key", None)
    if not secret:
        return
    if not x_api_key or not x_api_key.strip():
        raise HTTPException(status_code=401, detail="Missing X-API-Key header")
    if x_api_key.strip() != secret:
        raise HTTPException(status_code=403, detail="Invalid API key")
