import logging
import os
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from app.api.endpoints.upload import router as upload_router
from app.core.config import settings
from app.core.errors import MissingFields, UploadError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Chunked Upload Service",
    version="1.0.0",
    openapi_url=None if settings.ENV == "production" else "/openapi.json",
    docs_url=None if settings.ENV == "production" else "/docs",
    redoc_url=None if settings.ENV == "production" else "/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError):
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.url.path}: {exc}")
    else:
        logger.warning(f"{exc.kind} on {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed request on {request.url.path}: {exc.errors()}")
    err = MissingFields()
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


@app.get("/health")
async def health():
    return {"status": "running"}


app.include_router(upload_router, prefix="/api", tags=["upload"])

if settings.STORAGE_BACKEND == "local":
    os.makedirs(settings.DESTINATION_ROOT, exist_ok=True)
    app.mount(
        settings.PUBLIC_URL_PREFIX,
        StaticFiles(directory=settings.DESTINATION_ROOT),
        name="uploads",
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT)
