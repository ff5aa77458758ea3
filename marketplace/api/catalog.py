"""Catalog, wishlist and upload routes."""
import logging
import math
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from prometheus_client import Counter

from marketplace.api.dependencies import (
    get_current_user,
    get_product_service,
    get_upload_service,
    get_wishlist_service,
)
from marketplace.api.errors import track
from marketplace.domain.models import (
    CreateProductRequest,
    Product,
    ProductFilter,
    UpdateProductRequest,
    UploadResponse,
    User,
    WishlistToggleResponse,
)
from marketplace.services.catalog_service import ProductService, WishlistService
from marketplace.services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])

# Prometheus metrics
product_counter = Counter(
    "product_requests_total", "Total number of product requests", ["status"]
)
wishlist_counter = Counter(
    "wishlist_requests_total", "Total number of wishlist requests", ["status"]
)
upload_counter = Counter(
    "upload_total", "Total number of media uploads", ["status"]
)


# --- Products ---


@router.get("/products")
async def list_products(
    category: Optional[str] = None,
    brand: Optional[str] = None,
    in_stock: Optional[bool] = None,
    seller_id: Optional[UUID] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    service: ProductService = Depends(get_product_service),
) -> dict:
    """List products, newest first."""
    with track(product_counter, "product listing"):
        filters = ProductFilter(
            category=category,
            brand=brand,
            in_stock=in_stock,
            seller_id=seller_id,
            search=search,
            page=max(page, 1),
            limit=min(max(limit, 1), 100),
        )
        products, total = await service.list_products(filters)
        return {
            "data": products,
            "page": filters.page,
            "limit": filters.limit,
            "total": total,
            "total_pages": math.ceil(total / filters.limit) if total else 0,
        }


@router.post("/products", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: CreateProductRequest,
    user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
) -> Product:
    with track(product_counter, "product creation"):
        return await service.create_product(user, request)


@router.get("/products/slug/{slug}", response_model=Product)
async def get_product_by_slug(
    slug: str,
    service: ProductService = Depends(get_product_service),
) -> Product:
    with track(product_counter, "product retrieval"):
        return await service.get_product_by_slug(slug)


@router.get("/products/{product_id}", response_model=Product)
async def get_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
) -> Product:
    with track(product_counter, "product retrieval"):
        return await service.get_product(product_id)


@router.patch("/products/{product_id}", response_model=Product)
async def update_product(
    product_id: UUID,
    request: UpdateProductRequest,
    user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
) -> Product:
    with track(product_counter, "product update"):
        return await service.update_product(user, product_id, request)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    user: User = Depends(get_current_user),
    service: ProductService = Depends(get_product_service),
) -> None:
    with track(product_counter, "product deletion"):
        await service.delete_product(user, product_id)


# --- Wishlist ---


@router.get("/wishlist", response_model=List[Product])
async def list_wishlist(
    user: User = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service),
) -> List[Product]:
    with track(wishlist_counter, "wishlist listing"):
        return await service.list_products(user)


@router.post("/wishlist/{product_id}", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    product_id: UUID,
    user: User = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service),
) -> dict:
    with track(wishlist_counter, "wishlist add"):
        await service.add(user, product_id)
        return {"success": True}


@router.delete("/wishlist/{product_id}")
async def remove_from_wishlist(
    product_id: UUID,
    user: User = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service),
) -> dict:
    with track(wishlist_counter, "wishlist remove"):
        removed = await service.remove(user, product_id)
        return {"success": True, "removed": removed}


@router.post("/wishlist/{product_id}/toggle", response_model=WishlistToggleResponse)
async def toggle_wishlist(
    product_id: UUID,
    user: User = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service),
) -> WishlistToggleResponse:
    with track(wishlist_counter, "wishlist toggle"):
        return WishlistToggleResponse(is_in_wishlist=await service.toggle(user, product_id))


@router.get("/wishlist/{product_id}")
async def check_wishlist(
    product_id: UUID,
    user: User = Depends(get_current_user),
    service: WishlistService = Depends(get_wishlist_service),
) -> dict:
    with track(wishlist_counter, "wishlist check"):
        return {"is_in_wishlist": await service.contains(user, product_id)}


# --- Upload ---


@router.post("/upload", response_model=UploadResponse)
async def upload(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """Store an image or video in object storage."""
    with track(upload_counter, "upload"):
        service.check_size(file.size)
        body = await file.read()
        return await service.upload(user, file.filename, file.content_type, body)
