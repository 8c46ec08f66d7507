from pydantic import BaseModel
from typing import List, Optional


class ImageOut(BaseModel):
    id: int
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    is_primary: bool
    display_order: int
    secure_url: str

    model_config = {"from_attributes": True}


class ProductRef(BaseModel):
    id: int
    name: str
    store_id: int


class StoreRef(BaseModel):
    id: int
    name: str


class ProductImagesOut(BaseModel):
    success: bool = True
    product: Optional[ProductRef] = None
    images: List[ImageOut] = []


class StoreImagesOut(BaseModel):
    success: bool = True
    store: Optional[StoreRef] = None
    images: List[ImageOut] = []


class PrimaryImageOut(BaseModel):
    message: str
    image_id: int
    is_primary: bool
