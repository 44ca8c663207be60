import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from calltraffic.api import calls, dashboard, generation, health
from calltraffic.core.config import settings
from calltraffic.core.database import Base, engine
from calltraffic.core.errors import AggregationError, GenerationError, NotFoundError, ValidationError
from calltraffic.core.logging import configure_logging

configure_logging(settings.log_level)

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.include_router(health.router)
app.include_router(dashboard.router)
app.include_router(calls.router)
app.include_router(generation.router)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    logger.error("Generation failed: %s", exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(AggregationError)
async def aggregation_error_handler(request: Request, exc: AggregationError) -> JSONResponse:
    logger.error("Aggregation failed: %s", exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})
