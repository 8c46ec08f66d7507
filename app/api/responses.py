from fastapi import status
from fastapi.responses import FileResponse, RedirectResponse

from app.core import config
from app.services.image_resolver import Resolution
from app.services.path_guard import LocatedImage


def placeholder_redirect():
    return RedirectResponse(config.PLACEHOLDER_URL, status_code=status.HTTP_302_FOUND)


def redirect_to(url: str):
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


def file_response(image: LocatedImage):
    return FileResponse(
        image.path,
        media_type=image.media_type,
        headers={"Cache-Control": f"public, max-age={config.IMAGE_CACHE_MAX_AGE}"},
    )


def image_response(resolution: Resolution):
    if not resolution.found:
        return placeholder_redirect()
    return file_response(resolution.image)
