"""
Main FastAPI application for the HomeXREI marketplace API.
Serves health, payments, credits, deals, offers, lead charges and metrics.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from homexrei.api.routes import credits, deals, health, insights, lead_charges, offers, payments
from homexrei.core.config import settings
from homexrei.core.errors import MarketplaceError
from homexrei.core.logging import RequestIdMiddleware, configure_logging
from homexrei.utils.metrics import router as metrics_router

logger = logging.getLogger(__name__)

configure_logging()

app = FastAPI(
    title="HomeXREI API",
    description="Marketplace API: financing, credits, payments and listing videos",
    version="1.0.0",
)

# CORS
origins = settings.cors_origins_list or ["http://localhost:5173", "http://127.0.0.1:5173"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIdMiddleware)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", extra={"path": request.url.path, "error": exc.message})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Routers
app.include_router(health.router, tags=["health"])
app.include_router(payments.router)
app.include_router(credits.router)
app.include_router(deals.router)
app.include_router(insights.router)
app.include_router(offers.router)
app.include_router(lead_charges.router)
app.include_router(metrics_router)
