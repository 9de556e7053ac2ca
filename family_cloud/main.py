import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from family_cloud.api.routers.buckets import router as buckets_router
from family_cloud.api.routers.objects import router as objects_router
from family_cloud.api.schemas import HealthOut
from family_cloud.common.config import Settings, get_settings
from family_cloud.common.logging import STARTUP_LOGGER, setup_logging
from family_cloud.infra.observability.metrics import metrics_app
from family_cloud.infra.observability.middleware import MetricsMiddleware
from family_cloud.infra.storage.client import StorageClient, StorageError
from family_cloud.infra.storage.s3_client import S3StorageClient
from family_cloud.services.gateway_service import GatewayService
from family_cloud.services.object_keys import ObjectKeyFactory

ERROR_CODE_BY_STATUS = {
    400: "bad_request",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    415: "unsupported_media_type",
    500: "internal_error",
    502: "bad_gateway",
    503: "service_unavailable",
}


def _normalize_detail(detail):
    """Split an HTTPException detail into (message, details, error_code)."""
    if isinstance(detail, dict):
        maybe_code = detail.get("error_code")
        message = detail.get("message")
        extra = detail.get("details")
        return (
            message,
            extra,
            maybe_code if isinstance(maybe_code, str) else None,
        )
    return detail, None, None


def _resolve_error_code(status_code: int, override: str | None = None) -> str:
    if override:
        return override
    if status_code == 422:
        return "validation_error"
    return ERROR_CODE_BY_STATUS.get(status_code, "unknown_error")


def _describe_storage_target(settings: Settings) -> str:
    return f"{settings.storage_endpoint_url}/{settings.BUCKET_NAME}"


def _error_body(
    request: Request,
    status_code: int,
    message,
    details=None,
    code_override: str | None = None,
) -> dict:
    body = {
        "error": message,
        "status": status_code,
        "error_code": _resolve_error_code(status_code, code_override),
        "request_id": request.headers.get("X-Request-Id"),
    }
    if details is not None:
        body["details"] = details
    return body


def create_app(
    settings: Settings | None = None,
    *,
    storage_client: StorageClient | None = None,
    key_factory: ObjectKeyFactory | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)
    app = FastAPI(
        title="Family Cloud Gateway",
        version="1.0.0",
        description="HTTP gateway for uploading and retrieving files in MinIO",
    )

    gateway = GatewayService(
        storage_client or S3StorageClient(settings=settings),
        bucket=settings.BUCKET_NAME,
        key_factory=key_factory,
        chunk_size=settings.DOWNLOAD_CHUNK_SIZE,
    )
    app.state.gateway = gateway

    if settings.CORS_ENABLED:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS or ["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(buckets_router, tags=["buckets"])
    app.include_router(objects_router, tags=["objects"])

    if settings.ENABLE_METRICS:
        app.add_middleware(MetricsMiddleware)
        app.mount("/metrics", metrics_app)

    @app.on_event("startup")
    def on_startup() -> None:
        startup_logger = logging.getLogger(STARTUP_LOGGER)
        target = _describe_storage_target(settings)
        startup_logger.info(
            "Ensuring default bucket. [event=bucket_ensure_begin] (target=%s)", target
        )
        try:
            result = gateway.ensure_default_bucket()
        except StorageError as exc:
            startup_logger.error(
                "Cannot ensure default bucket, aborting startup. Check MINIO_* "
                "settings and that the storage service is reachable."
                " [event=bucket_ensure_failed] (target=%s, error=%s)",
                target,
                exc,
            )
            raise
        startup_logger.info(
            'Bucket "%s" %s. [event=bucket_ensure_succeeded] (target=%s)',
            result.bucket,
            "created" if result.created else "exists",
            target,
        )
        startup_logger.info(
            "API ready on http://%s:%s -> %s", settings.HOST, settings.PORT, target
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger = logging.getLogger("http")
        message, details, code_override = _normalize_detail(exc.detail)
        logger.log(
            logging.WARNING if exc.status_code < 500 else logging.ERROR,
            "http_exception status=%s error=%s method=%s path=%s request_id=%s",
            exc.status_code,
            message,
            request.method,
            request.url.path,
            request.headers.get("X-Request-Id"),
            extra={
                "extra": {
                    "status": exc.status_code,
                    "error": message,
                    "details": details,
                    "method": request.method,
                    "route": request.url.path,
                    "request_id": request.headers.get("X-Request-Id"),
                }
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                request, exc.status_code, message, details, code_override
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        return JSONResponse(
            status_code=422,
            content=_error_body(
                request,
                422,
                "invalid request",
                jsonable_encoder(exc.errors()),
            ),
        )

    @app.get("/health", response_model=HealthOut)
    async def health():
        return HealthOut(ok=True)

    @app.get("/ready")
    async def ready():
        try:
            exists = await run_in_threadpool(gateway.default_bucket_exists)
        except StorageError as exc:
            return {"status": "not_ready", "detail": {"storage": str(exc)}}
        if not exists:
            return {"status": "not_ready", "detail": {"missing_bucket": gateway.bucket}}
        return {"status": "ready", "bucket": gateway.bucket}

    return app


app = create_app()


def main() -> None:
    settings = get_settings()
    uvicorn.run("family_cloud.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
