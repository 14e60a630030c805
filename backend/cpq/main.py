"""
CPQ Costing API
FastAPI service exposing the quote costing engine: cost summary, sale price
and allocation of the sale price across staffing positions.
"""
import os
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cpq.services.logging_config import setup_logging
from cpq.services.middleware import RequestContextMiddleware

load_dotenv()

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("cpq-api")

APP_VERSION = "1.0.0"

app = FastAPI(
    title="CPQ Costing API",
    version=APP_VERSION,
    description="Monthly cost aggregation, sale price and position allocation for guard-service quotes",
)

# ---------------------------------------------------------------------------
# CORS restricted to allowed origins from env
# ---------------------------------------------------------------------------
_cors_default = "http://localhost:3000,http://localhost:8000"
cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", _cors_default).split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With", "X-Request-ID"],
)
# Request context is outermost so it wraps all other middleware
app.add_middleware(RequestContextMiddleware)

# Routers
from cpq.api.costing_routes import router as costing_router  # noqa: E402

app.include_router(costing_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cpq.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
