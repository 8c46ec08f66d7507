from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, Response

from app.api.responses import file_response, placeholder_redirect
from app.core import config
from app.core.dependencies import get_media_root
from app.core.logging_config import get_image_logger
from app.services.path_guard import IMAGE_MEDIA_TYPES, LocatedImage, PathSecurityGuard, PathStatus
from app.utils.image_paths import parse_canonical_path
from app.utils.placeholder import placeholder_file, render_placeholder

router = APIRouter(tags=["Uploads"])
logger = get_image_logger()


# =====================================================================
# GUARDED STATIC UPLOADS
# =====================================================================
@router.get("/uploads/{file_path:path}")
def serve_upload(file_path: str, media_root: str = Depends(get_media_root)):
    url = f"/uploads/{file_path}"
    guard = PathSecurityGuard(media_root)

    path = guard.file_for(url)
    if path is not None and not path.is_relative_to(guard.media_root / "uploads"):
        logger.warning(f"SECURITY | upload path escapes uploads/: {url}")
        path = None

    if path is None or path.suffix.lower() not in IMAGE_MEDIA_TYPES:
        logger.info(f"Upload not found: {url}")
        return placeholder_redirect()

    if parse_canonical_path(url) is None:
        logger.warning(f"SECURITY | serving non-scoped upload path {url}")
        return file_response(LocatedImage(url, path, PathStatus.LEGACY))

    return file_response(LocatedImage(url, path, PathStatus.CANONICAL))


# =====================================================================
# SHARED PLACEHOLDER
# =====================================================================
@router.get("/placeholder-image.jpg")
def placeholder_image():
    asset = placeholder_file(config.PLACEHOLDER_FILE)
    if asset:
        return FileResponse(asset, media_type="image/jpeg")
    return Response(content=render_placeholder(), media_type="image/jpeg")
