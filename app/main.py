from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.db import base  # noqa: F401  (registers every model)
from app.api.responses import placeholder_redirect
from app.api.routes import (
    product_images,
    store_images,
    promotion_images,
    reservation_images,
    uploads,
)
from app.core.config import CORS_ORIGINS
from app.core.errors import ImageUnavailable

# ⭐ Import logging system
from app.core.logging_config import get_logger, get_image_logger

logger = get_logger()
image_logger = get_image_logger()

app = FastAPI(
    title="Marketplace Media API",
    version="1.0.0",
    description="Tenant-scoped image resolution for products, stores, promotions & reservations"
)


# ⭐ Request Logging Middleware
@app.middleware("http")
async def log_requests(request, call_next):
    logger.info(f"REQUEST: {request.method} {request.url}")

    try:
        response = await call_next(request)
        logger.info(f"RESPONSE: {response.status_code} {request.url}")
        return response

    except Exception as e:
        logger.error(f"ERROR: {request.url} -> {str(e)}")
        raise e


# ⭐ Every image miss looks the same from outside: a redirect to the placeholder
@app.exception_handler(ImageUnavailable)
async def image_unavailable_handler(request: Request, exc: ImageUnavailable):
    image_logger.log(exc.log_level, f"{type(exc).__name__} | {request.url.path} | {exc.message}")
    return placeholder_redirect()


# ⭐ CORS (image routes are loaded cross-origin by the storefront)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------- ROUTERS REGISTER ORDER MATTERS --------
app.include_router(product_images.router)
app.include_router(store_images.router)
app.include_router(promotion_images.router)
app.include_router(reservation_images.router)
app.include_router(uploads.router)


@app.get("/", tags=["Root"])
def root():
    return {"message": "Backend running successfully"}
