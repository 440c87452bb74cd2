import asyncio
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import health_router, webhook_router
from config import settings
from errors import OdooError
from odoo_client import get_odoo_client

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("form-orders")

app = FastAPI(title="Form Orders Bridge")

if settings.allowed_origins == ["*"]:
    allow_origins = ["*"]
else:
    allow_origins = settings.allowed_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(webhook_router)


@app.on_event("startup")
async def _on_startup() -> None:
    try:
        await asyncio.to_thread(get_odoo_client().authenticate)
    except OdooError as exc:
        logger.error("%s; will retry on the first webhook", exc)
    if not settings.webhook_token:
        logger.warning(
            "WEBHOOK_TOKEN is not set; the webhook accepts unauthenticated submissions."
        )


def run() -> None:
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
