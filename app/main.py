import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from app.api.v1.health import router as health_router
from app.api.v1.extraction import router as extraction_router
from app.api.v1.analyze import router as analyze_router
from app.api.v1.report import router as report_router
from app.core.cors import cors_options
from app.core.rate_limit import limiter
from app.core.config import settings
from app.extraction import ExtractionError

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

logger = logging.getLogger(__name__)

app = FastAPI(title="HR Resume Analyzer API", version="0.1.0")

app.add_middleware(CORSMiddleware, **cors_options())
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError):
    logger.info("extraction_rejected path=%s code=%s", request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail, "code": exc.code})


app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(extraction_router, prefix="/v1", tags=["Extraction"])
app.include_router(analyze_router, prefix="/v1", tags=["Analysis"])
app.include_router(report_router, prefix="/v1", tags=["Report"])
