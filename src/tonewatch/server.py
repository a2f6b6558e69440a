"""FastAPI server: Crisp webhook intake and the tenant config API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import httpx
from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from tonewatch import __version__
from tonewatch.adapters.crisp_client import CrispConversationClient
from tonewatch.adapters.crisp_mapper import build_message
from tonewatch.adapters.file_tenant_store import FileTenantStore
from tonewatch.adapters.profanity_wordlist import load_word_list
from tonewatch.adapters.sentiment_scorer import AfinnSentimentScorer
from tonewatch.adapters.slack_notifier import SlackWebhookNotifier
from tonewatch.adapters.toxicity_scorer import DetoxifyToxicityScorer
from tonewatch.client import build_http_client
from tonewatch.core.content import LinkBuilder
from tonewatch.core.dispatch import DispatchCoordinator
from tonewatch.core.errors import ConfigValidationError, InvalidTenantError
from tonewatch.core.ports import ScorerPort, TenantConfigPort
from tonewatch.core.processor import ScreeningProcessor
from tonewatch.core.relay import BackgroundRelay
from tonewatch.settings import AppSettings

LOGGER = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response


def _error(errors: list[str], status_code: int = 400) -> JSONResponse:
    return JSONResponse({"ok": False, "errors": errors}, status_code=status_code)


def create_app(
    tenant_store: TenantConfigPort,
    relay: BackgroundRelay,
    scorer: ScorerPort,
    rate_limit: Optional[str] = "60/minute",
    resources: Iterable[Any] = (),
) -> FastAPI:
    """Build the app around already-constructed services.

    The scorer warm-up runs in the lifespan before the first request is
    served; shutdown drains in-flight screening tasks and then closes
    ``resources`` (anything with ``aclose()``).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await scorer.warm_up()
        LOGGER.info("Scorer ready (%s)", scorer.polarity.value)
        try:
            yield
        finally:
            await relay.drain()
            for resource in resources:
                await resource.aclose()

    app = FastAPI(title="tonewatch", version=__version__, lifespan=lifespan)

    limiter: Optional[Limiter] = None
    if rate_limit:
        limiter = Limiter(key_func=get_remote_address, default_limits=[rate_limit])
        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
        app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    @app.post("/webhook")
    async def webhook(request: Request):
        # Crisp only needs an acknowledgment; screening runs detached.
        try:
            payload = await request.json()
        except ValueError:
            LOGGER.warning("Webhook body is not valid JSON")
            return PlainTextResponse("OK")
        message = build_message(payload)
        if message is not None:
            relay.submit(message)
        return PlainTextResponse("OK")

    if limiter is not None:
        # Every tenant's events arrive from the same Crisp delivery hosts.
        limiter.exempt(webhook)

    @app.get("/plugin-config/{tenant_id}")
    async def get_plugin_config(tenant_id: str):
        try:
            config = tenant_store.get(tenant_id)
        except InvalidTenantError:
            return _error(["invalid tenant id"])
        return {"ok": True, "tenantId": tenant_id, "config": config.to_dict()}

    @app.post("/plugin-config/{tenant_id}")
    async def update_plugin_config(tenant_id: str, request: Request):
        try:
            partial = await request.json()
        except ValueError:
            return _error(["Request body must be a JSON object."])
        try:
            config = tenant_store.update(tenant_id, partial)
        except InvalidTenantError:
            return _error(["invalid tenant id"])
        except ConfigValidationError as exc:
            return _error(exc.errors)
        return {"ok": True, "tenantId": tenant_id, "config": config.to_dict()}

    @app.get("/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app


def build_scorer(settings: AppSettings) -> ScorerPort:
    if settings.scorer == "toxicity":
        return DetoxifyToxicityScorer(model_name=settings.toxicity_model)
    return AfinnSentimentScorer()


def build_processor(
    settings: AppSettings,
    store: TenantConfigPort,
    scorer: ScorerPort,
    http: httpx.AsyncClient,
) -> ScreeningProcessor:
    """Wire the Crisp and Slack adapters into a screening processor."""

    if not settings.crisp_identifier or not settings.crisp_key:
        raise RuntimeError("CRISP_IDENTIFIER and CRISP_KEY are required to run the relay")

    conversations = CrispConversationClient(
        http,
        identifier=settings.crisp_identifier,
        key=settings.crisp_key,
        api_base=settings.crisp_api_base,
    )
    dispatcher = DispatchCoordinator(conversations, SlackWebhookNotifier(http))
    word_list = load_word_list(settings.extra_words, settings.allow_words)
    LOGGER.info("%s moderation words loaded", len(word_list))
    return ScreeningProcessor(
        tenant_configs=store,
        scorer=scorer,
        word_list=word_list,
        dispatcher=dispatcher,
        links=LinkBuilder(settings.crisp_app_base),
    )


def build_app(settings: AppSettings) -> FastAPI:
    """Construct the production app from resolved settings."""

    store = FileTenantStore(settings.data_dir, settings.tenant_defaults)
    scorer = build_scorer(settings)
    http = build_http_client()
    processor = build_processor(settings, store, scorer, http)
    return create_app(
        tenant_store=store,
        relay=BackgroundRelay(processor),
        scorer=scorer,
        rate_limit=settings.rate_limit,
        resources=[http],
    )
