# planexpiry/main.py

from __future__ import annotations

from fastapi import FastAPI

from planexpiry.config import get_settings
from planexpiry.logging_config import configure_logging
from planexpiry.routers import admin_expiry_router

settings = get_settings()
configure_logging(json_format=settings.LOG_FORMAT == "json", level=settings.LOG_LEVEL)

app = FastAPI(title="Free Plan Expiry")

app.include_router(admin_expiry_router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "plan-expiry"}
