import io
import os
from functools import lru_cache

from PIL import Image, ImageDraw

PLACEHOLDER_SIZE = (300, 300)
BACKGROUND = (204, 204, 204)
FOREGROUND = (102, 102, 102)


@lru_cache(maxsize=1)
def render_placeholder() -> bytes:
    """Neutral JPEG used when no placeholder asset is configured on disk."""
    img = Image.new("RGB", PLACEHOLDER_SIZE, BACKGROUND)
    draw = ImageDraw.Draw(img)
    w, h = PLACEHOLDER_SIZE
    draw.rectangle([w // 4, h // 4, 3 * w // 4, 3 * h // 4], outline=FOREGROUND, width=4)
    draw.line([w // 4, 3 * h // 4, w // 2, h // 2, 3 * w // 4, 3 * h // 4], fill=FOREGROUND, width=4)

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=85)
    buffer.seek(0)

    return buffer.read()


def placeholder_file(path: str):
    """Configured placeholder asset if it exists, else None."""
    return path if path and os.path.isfile(path) else None
