from loguru import logger
import os

from app.core.config import LOG_DIR

# Create folder if missing
if not os.path.exists(LOG_DIR):
    os.makedirs(LOG_DIR)

# Remove default handler
logger.remove()

# General application log
logger.add(
    f"{LOG_DIR}/app.log",
    rotation="1 week",
    retention="4 weeks",
    level="INFO",
    enqueue=True,
    format="{time} | {level} | {message}"
)

# Image resolution audit log (storage drift, ownership mismatches, misses)
logger.add(
    f"{LOG_DIR}/images.log",
    rotation="1 week",
    retention="8 weeks",
    level="INFO",
    enqueue=True,
    filter=lambda record: record["extra"].get("log_type") == "image",
    format="{time} | {level} | {message}"
)

# Seller write activity (primary toggles, deletions)
logger.add(
    f"{LOG_DIR}/seller.log",
    rotation="1 week",
    retention="4 weeks",
    level="INFO",
    enqueue=True,
    filter=lambda record: record["extra"].get("log_type") == "seller",
    format="{time} | {level} | {message}"
)

# Error logs
logger.add(
    f"{LOG_DIR}/errors.log",
    rotation="1 week",
    retention="8 weeks",
    level="ERROR",
    enqueue=True,
)


def get_logger():
    return logger


def get_image_logger():
    """Logger bound to the image audit sink."""
    return logger.bind(log_type="image")
