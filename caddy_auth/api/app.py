from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from caddy_auth.depends import close_token_store, init_models
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


def _error_body(exc) -> dict:
    error = exc.base_error
    return {"code": str(error.code), "message": error.message, "details": list(error.details)}


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = _error_body(exc)
    logger.warning(f"Client error on {request.url.path}: {error_dict['code']}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = _error_body(exc)
    logger.error(f"Server error on {request.url.path}: {error_dict['message']}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    yield
    await close_token_store()


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(
        level=ApplicationConfig.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="caddy-auth", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from caddy_auth.api.routes import auth, health_check

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(auth.router, prefix=ApplicationConfig.API_PREFIX, tags=["Accounts"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
