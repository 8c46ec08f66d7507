# Import every model so relationship strings resolve and Alembic sees
# the full metadata.
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.store import Store  # noqa: F401
from app.models.product import Product  # noqa: F401
from app.models.product_image import ProductImage  # noqa: F401
from app.models.store_image import StoreImage  # noqa: F401
from app.models.promotion import Promotion  # noqa: F401
from app.models.reservation import Reservation  # noqa: F401
