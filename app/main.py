import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.fee_structure.router import router as fee_structure_router
from app.api.v1.payments.router import router as payments_router
from app.api.v1.students.router import router as students_router
from app.api.v1.terms.router import router as terms_router
from app.api.v1.users.router import router as users_router
from app.api.v1.zbpay.router import router as zbpay_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.schemas import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "body"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [ErrorDetail(field=_field_name(err.get("loc", ())), message=err.get("msg", "")) for err in exc.errors()]
    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, [d.field for d in details])
    body = ErrorResponse(error="Validation failed", details=details)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(body.model_dump(exclude_none=True)),
    )


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title="School Fees Backend")

    # CORS: allow the fees portal frontend to call this API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Routers
    app.include_router(terms_router)
    app.include_router(fee_structure_router)
    app.include_router(students_router)
    app.include_router(payments_router)
    app.include_router(zbpay_router)
    app.include_router(users_router)

    return app


app = create_app()
