import os
from dotenv import load_dotenv

load_dotenv()

# -------- DATABASE --------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")

# -------- MEDIA STORAGE --------
# Directory that contains the "uploads/" tree written by the upload pipeline
MEDIA_ROOT = os.getenv("MEDIA_ROOT", "public")
PLACEHOLDER_URL = "/placeholder-image.jpg"
PLACEHOLDER_FILE = os.getenv(
    "PLACEHOLDER_FILE", os.path.join(MEDIA_ROOT, "placeholder-image.jpg")
)
DEFAULT_IMAGE_FILENAME = os.getenv("DEFAULT_IMAGE_FILENAME", "main.jpg")
IMAGE_CACHE_MAX_AGE = int(os.getenv("IMAGE_CACHE_MAX_AGE", 300))
IMAGE_LIST_CACHE_TTL = int(os.getenv("IMAGE_LIST_CACHE_TTL", 60))

# Origin the storefront is served from; clients pin relative image URLs to it
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

# -------- AUTH --------
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# -------- MISC --------
REDIS_URL = os.getenv("REDIS_URL")
LOG_DIR = os.getenv("LOG_DIR", "logs")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")]
