"""FastAPI application for the Foodoscope verification service."""

import logging
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from app.models.schemas import (
    AuditRequest,
    AuditResponse,
    KitchenRequest,
    KitchenResponse,
    HealthResponse
)
from app.core.audit import DishAuditor
from app.core.kitchen import KitchenAssistant, fallback_recipes
from app.core.model_interface import ModelManager
from app.core.proxy import ApiProxy, PREFLIGHT_HEADERS
from app.core.upstream import FoodDatabaseClient
from app.core.vision import VisionAnalyzer
from config.settings import get_settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

model_manager: Optional[ModelManager] = None
dish_auditor: Optional[DishAuditor] = None
kitchen_assistant: Optional[KitchenAssistant] = None
api_proxy: Optional[ApiProxy] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global model_manager, dish_auditor, kitchen_assistant, api_proxy

    settings = get_settings()
    logger.info(f"Starting {settings.app_name} application...")

    model_manager = ModelManager(settings)
    model_manager.initialize(use_mock=settings.use_mock)

    database = FoodDatabaseClient(
        proxy_endpoint=settings.proxy_endpoint,
        auth_token=settings.proxy_auth_token,
        timeout=settings.upstream_timeout
    )
    dish_auditor = DishAuditor(VisionAnalyzer(model_manager.vision), database)
    kitchen_assistant = KitchenAssistant(model_manager.chat)
    logger.info(f"Upstream databases reached through {settings.proxy_endpoint}")

    if not settings.proxy_api_key:
        logger.warning("Proxy API key is not configured")
    api_proxy = ApiProxy(
        flavordb_base=settings.flavordb_base,
        recipedb_base=settings.recipedb_base,
        api_key=settings.proxy_api_key,
        timeout=settings.upstream_timeout
    )

    yield

    logger.info(f"Shutting down {settings.app_name} application...")


app = FastAPI(
    title="Foodoscope API",
    description="Dish verification and sustainable recipe suggestions",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_dish_auditor() -> DishAuditor:
    if dish_auditor is None:
        raise HTTPException(status_code=503, detail="Audit service not initialized")
    return dish_auditor


def get_kitchen_assistant() -> KitchenAssistant:
    # Without a configured assistant every request gets the fallback set
    return kitchen_assistant or KitchenAssistant(chat=None)


def get_api_proxy() -> ApiProxy:
    if api_proxy is None:
        raise HTTPException(status_code=503, detail="Proxy not initialized")
    return api_proxy


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check service health and status."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        mock_mode=settings.use_mock,
        vision_model=model_manager.vision.get_model_name() if model_manager and model_manager.vision else "",
        chat_model=model_manager.chat.get_model_name() if model_manager and model_manager.chat else "",
        chat_configured=model_manager.chat_configured if model_manager else False,
        ready=model_manager.is_ready() if model_manager else False,
        version=settings.app_version
    )


@app.post("/api/audit-dish", tags=["Audit"])
async def audit_dish(request: Request, auditor: DishAuditor = Depends(get_dish_auditor)):
    """
    Verify a dish from its photos.

    - **orderId**: Order being audited
    - **photoUrls**: Photos as base64 strings or data URLs; only the first is analyzed
    """
    try:
        audit_request = AuditRequest.model_validate(await request.json())
        result = await run_in_threadpool(auditor.audit, audit_request)
        return JSONResponse(content=result.to_json())
    except Exception as e:
        logger.exception(f"Audit route error: {e}")
        error = AuditResponse(status="error", message="Internal Server Error", debug=str(e))
        return JSONResponse(status_code=500, content=error.to_json())


@app.post("/api/kitchen-assistant", response_model=KitchenResponse, tags=["Kitchen"])
async def suggest_recipes(
    request: Request,
    assistant: KitchenAssistant = Depends(get_kitchen_assistant)
):
    """
    Suggest recipes that use up expiring ingredients.

    Always answers 200; canned recipes are returned when generation fails.
    """
    try:
        payload = KitchenRequest.model_validate(await request.json())
    except Exception as e:
        logger.warning(f"Unreadable kitchen request, returning fallback recipes: {e}")
        return KitchenResponse(recipes=fallback_recipes())

    outcome = await run_in_threadpool(assistant.suggest, payload.pantry_text, payload.expiring_text)
    if outcome.used_fallback:
        logger.info(f"Served fallback recipes due to: {outcome.error}")
    return KitchenResponse(recipes=outcome.recipes)


@app.options("/api-proxy/{path:path}", tags=["Proxy"])
@app.options("/functions/v1/api-proxy/{path:path}", tags=["Proxy"])
async def proxy_preflight(path: str):
    """Answer CORS preflight requests for the proxy."""
    return PlainTextResponse("ok", headers=PREFLIGHT_HEADERS)


@app.get("/api-proxy/{path:path}", tags=["Proxy"])
@app.get("/functions/v1/api-proxy/{path:path}", tags=["Proxy"])
async def proxy_upstream(path: str, request: Request, proxy: ApiProxy = Depends(get_api_proxy)):
    """Forward a read-only request to FlavorDB or RecipeDB."""
    result = await run_in_threadpool(proxy.forward, "/" + path, request.url.query)
    return Response(
        content=result.content,
        status_code=result.status_code,
        media_type=result.media_type,
        headers=result.headers
    )


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
