from prometheus_fastapi_instrumentator import Instrumentator

from .core.config import settings
from .core.logging import configure_logging
from .services.health import check_api_health
from . import app as web_app

configure_logging(settings.LOG_LEVEL)
app = web_app
app.title = settings.APP_NAME
instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics", "/static"])
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/health/api")
async def api_health() -> dict:
    """Readiness of the remote REST API this client depends on."""

    result = await check_api_health()
    return {"ok": result.is_healthy, "status": result.status, "status_text": result.status_text}
