import uvicorn
from prometheus_fastapi_instrumentator import Instrumentator

from warrity.core.logging import configure_logging
from warrity.settings import settings
from . import app as api_app

configure_logging(settings.LOG_LEVEL)
app = api_app
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, include_in_schema=False)


@app.get("/health")
async def health() -> dict[str, bool]:
    return {"ok": True}


def run() -> None:
    uvicorn.run("warrity.main:app", host=settings.HOST, port=settings.PORT, log_config=None)
