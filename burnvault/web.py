"""
BurnVault HTTP surface (aiohttp).

Routes:
    POST /v1/secrets           create a secret
    GET  /v1/secrets/{id}      redeem a secret (burn-on-read)
    GET  /health               backend connectivity
    GET  /health/liveness      process is up
    GET  /health/readiness     backend is reachable

Expired, burned and unknown secrets all produce the same 404 body.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import orjson
from aiohttp import web
from pydantic import BaseModel, Field, ValidationError, field_validator

from .config import (
    MAX_TTL_SECONDS,
    MAX_VIEWS_LIMIT,
    MIN_TTL_SECONDS,
    StoreConfig,
)
from .exceptions import BackendUnavailable, DecryptionError, SecretNotFound
from .store import SecretStore
from .sweeper import SecretSweeper

logger = logging.getLogger("burnvault.web")

SERVICE_NAME = "burnvault"
NOT_FOUND_MESSAGE = "This secret has been burned, expired, or does not exist."

STORE_KEY = web.AppKey("burnvault_store", SecretStore)
CONFIG_KEY = web.AppKey("burnvault_config", StoreConfig)
SWEEPER_KEY = web.AppKey("burnvault_sweeper", SecretSweeper)


class CreateSecretRequest(BaseModel):
    """Body of ``POST /v1/secrets``."""

    text: str = Field(min_length=1)
    ttl_seconds: Optional[int] = Field(
        default=None, alias="ttlSeconds", ge=MIN_TTL_SECONDS, le=MAX_TTL_SECONDS,
    )
    max_views: Optional[int] = Field(
        default=None, alias="maxViews", ge=1, le=MAX_VIEWS_LIMIT,
    )

    model_config = {"populate_by_name": True}

    @field_validator("text")
    @classmethod
    def validate_text_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The secret text is required.")
        return v


def _dumps(obj: Any) -> str:
    return orjson.dumps(obj).decode("utf-8")


def json_response(data: Any, status: int = 200) -> web.Response:
    return web.json_response(data, status=status, dumps=_dumps)


def error_response(
    code: str,
    message: str,
    status: int,
    details: Optional[dict] = None,
) -> web.Response:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return json_response({"error": error}, status=status)


def validation_details(err: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by field, using the public (camelCase) names."""
    details: dict[str, list[str]] = {}
    for item in err.errors():
        field = ".".join(str(part) for part in item["loc"]) or "body"
        details.setdefault(field, []).append(item["msg"])
    return details


def _invalid(details: dict) -> web.Response:
    return error_response(
        "VALIDATION_ERROR", "The given data was invalid.", 422, details,
    )


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Translate store errors into uniform JSON responses."""
    try:
        return await handler(request)
    except SecretNotFound:
        return error_response("SECRET_NOT_FOUND", NOT_FOUND_MESSAGE, 404)
    except BackendUnavailable as err:
        logger.error("Backend unavailable on %s %s: %s", request.method, request.path, err)
        return error_response(
            "BACKEND_UNAVAILABLE", "The service is temporarily unavailable.", 503,
        )
    except DecryptionError:
        return error_response(
            "INTEGRITY_ERROR", "The secret could not be decrypted.", 500,
        )


# ---------------------------------------------------------------------------
# Secret handlers
# ---------------------------------------------------------------------------

async def create_secret(request: web.Request) -> web.Response:
    config = request.app[CONFIG_KEY]
    try:
        payload = await request.json(loads=orjson.loads)
    except ValueError:
        return _invalid({"body": ["The request body must be valid JSON."]})
    if not isinstance(payload, dict):
        return _invalid({"body": ["The request body must be a JSON object."]})

    try:
        body = CreateSecretRequest.model_validate(payload)
    except ValidationError as err:
        return _invalid(validation_details(err))
    if len(body.text) > config.max_text_length:
        return _invalid({
            "text": [
                "The secret text may not be greater than "
                f"{config.max_text_length:,} characters."
            ]
        })

    store = request.app[STORE_KEY]
    public_id = await store.create(
        body.text, ttl_seconds=body.ttl_seconds, max_views=body.max_views,
    )
    base_url = config.frontend_url.rstrip("/")
    return json_response(
        {"data": {"id": public_id, "url": f"{base_url}/secrets/{public_id}"}},
        status=201,
    )


async def retrieve_secret(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    secret = await store.retrieve(request.match_info["id"])
    return json_response({
        "data": {
            "text": secret.text,
            "remainingViews": secret.remaining_views,
        }
    })


# ---------------------------------------------------------------------------
# Health handlers
# ---------------------------------------------------------------------------

async def health(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": SERVICE_NAME,
    }
    if await store.backend.ping():
        status["backend"] = "connected"
        return json_response(status)
    status["status"] = "degraded"
    status["backend"] = "disconnected"
    return json_response(status, status=503)


async def liveness(request: web.Request) -> web.Response:
    return json_response({"status": "alive"})


async def readiness(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    if await store.backend.ping():
        return json_response({"status": "ready"})
    return json_response(
        {"status": "not ready", "reason": "backend unavailable"}, status=503,
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

async def _store_context(app: web.Application):
    store = app[STORE_KEY]
    await store.backend.open()
    sweeper = app.get(SWEEPER_KEY)
    if sweeper is not None:
        sweeper.start()
    logger.info("BurnVault ready (backend=%s)", store.backend.name)
    yield
    try:
        if sweeper is not None:
            await sweeper.stop()
    finally:
        await store.backend.close()


def create_app(
    config: Optional[StoreConfig] = None,
    store: Optional[SecretStore] = None,
) -> web.Application:
    """Build the aiohttp application.

    Args:
        config: Settings, read from the environment when omitted.
        store: Pre-built store (tests inject one with a manual clock).
    """
    if config is None:
        config = StoreConfig.from_env()
    if store is None:
        store = SecretStore.from_config(config)
    app = web.Application(middlewares=[error_middleware])
    app[CONFIG_KEY] = config
    app[STORE_KEY] = store
    if config.sweep_interval > 0:
        app[SWEEPER_KEY] = SecretSweeper(store, interval=config.sweep_interval)
    app.cleanup_ctx.append(_store_context)
    app.router.add_post("/v1/secrets", create_secret)
    app.router.add_get(r"/v1/secrets/{id:[A-Za-z0-9_-]+}", retrieve_secret)
    app.router.add_get("/health", health)
    app.router.add_get("/health/liveness", liveness)
    app.router.add_get("/health/readiness", readiness)
    return app
