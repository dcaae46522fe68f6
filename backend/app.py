"""FastAPI app para a mini-app: visualizações de cartões e evento de fecho."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backend.routes import router
from dobrobot import __version__
from dobrobot.config import Config, load_config
from dobrobot.runtime import Runtime, create_runtime
from dobrobot.utils.logging_config import configure_logging, log_context


def create_app(config: Config | None = None, runtime: Runtime | None = None) -> FastAPI:
    """
    App com runtime injetado (testes) ou criado no arranque a partir da config.
    Runtime injetado não é fechado no shutdown: pertence a quem o criou.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if runtime is not None:
            app.state.runtime = runtime
            yield
            await runtime.service.drain()
            return
        configure_logging()
        cfg = config or load_config()
        app.state.api_secret_key = cfg.api.secret_key
        app.state.runtime = await create_runtime(cfg)
        try:
            yield
        finally:
            await app.state.runtime.close()

    app = FastAPI(title="Dobro mini app API", version=__version__, lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.api_secret_key = (config.api.secret_key if config else None) or (
        runtime.config.api.secret_key if runtime else None
    )
    if runtime is not None:
        app.state.runtime = runtime

    @app.middleware("http")
    async def trace_id_middleware(request: Request, call_next):
        with log_context(request.headers.get("X-Request-ID")) as trace_id:
            response = await call_next(request)
            response.headers["X-Request-ID"] = trace_id
            return response

    @app.get("/health")
    def health():
        return {"status": "ok"}

    app.include_router(router)
    return app


app = create_app()
