from enum import Enum


class PromotionType(str, Enum):
    FLASH = "flash"
    REGULAR = "regular"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"


class ImageVariant(str, Enum):
    FULL = "full"
    THUMBNAIL = "thumbnail"
