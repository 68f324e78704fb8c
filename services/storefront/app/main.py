"""Tiffin storefront API service entrypoint."""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from packages.shared.schemas.envelope import failure
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.storefront.app.config import get_settings
from services.storefront.app.db.init_db import init_db
from services.storefront.app.errors import StorefrontError
from services.storefront.app.logging_config import setup_logging
from services.storefront.app.routers.cart import router as cart_router
from services.storefront.app.routers.catalog import router as catalog_router
from services.storefront.app.routers.checkout import router as checkout_router
from services.storefront.app.routers.orders import router as orders_router
from services.storefront.app.routers.profile import router as profile_router
from services.storefront.app.routers.reporting import router as reporting_router
from services.storefront.app.routers.verification import router as verification_router

app = FastAPI(title="Tiffin Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["POST", "GET", "OPTIONS", "PUT", "DELETE"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(orders_router)
app.include_router(profile_router)
app.include_router(verification_router)
app.include_router(reporting_router)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        body = failure(str(detail.get("error")), detail.get("details"))
    else:
        body = failure(str(detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(body),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(failure("Invalid request.", {"errors": exc.errors()})),
    )


@app.exception_handler(StorefrontError)
async def _storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(failure(exc.message, exc.details or None)),
    )


@app.on_event("startup")
def _startup() -> None:
    setup_logging(get_settings().log_level)
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
