"""Product catalog and wishlist services."""
import logging
from typing import List, Tuple
from uuid import UUID

from marketplace.domain.exceptions import PermissionDeniedException, ProductNotFoundException
from marketplace.domain.models import (
    CreateProductRequest,
    Product,
    ProductFilter,
    UpdateProductRequest,
    User,
    UserRole,
    WishlistItem,
)
from marketplace.infrastructure.repositories import ProductRepository, WishlistRepository
from marketplace.utils import slugify

logger = logging.getLogger(__name__)


class ProductService:
    """Service for the storefront product catalog."""

    def __init__(self, product_repository: ProductRepository):
        self.product_repository = product_repository

    async def _unique_slug(self, base: str) -> str:
        slug = base
        suffix = 2
        while await self.product_repository.get_by_slug(slug):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    async def create_product(self, user: User, request: CreateProductRequest) -> Product:
        if user.role not in (UserRole.SELLER, UserRole.ADMIN):
            raise PermissionDeniedException("Only sellers can add products")

        data = request.model_dump(exclude={"slug"})
        slug = await self._unique_slug(slugify(request.slug or f"{request.brand} {request.name}"))
        product = Product(**data, slug=slug, seller_id=user.user_id)
        return await self.product_repository.create(product)

    async def get_product(self, product_id: UUID) -> Product:
        product = await self.product_repository.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundException(str(product_id))
        return product

    async def get_product_by_slug(self, slug: str) -> Product:
        product = await self.product_repository.get_by_slug(slug)
        if product is None:
            raise ProductNotFoundException(slug)
        return product

    async def list_products(self, filters: ProductFilter) -> Tuple[List[Product], int]:
        return await self.product_repository.list(filters)

    async def _get_editable(self, user: User, product_id: UUID) -> Product:
        product = await self.get_product(product_id)
        if user.role != UserRole.ADMIN and product.seller_id != user.user_id:
            raise PermissionDeniedException("Only the product owner can modify it")
        return product

    async def update_product(self, user: User, product_id: UUID, request: UpdateProductRequest) -> Product:
        product = await self._get_editable(user, product_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        return await self.product_repository.update(product.model_copy(update=changes))

    async def delete_product(self, user: User, product_id: UUID) -> None:
        await self._get_editable(user, product_id)
        await self.product_repository.delete(product_id)


class WishlistService:
    """Service for customer wishlists."""

    def __init__(self, wishlist_repository: WishlistRepository, product_repository: ProductRepository):
        self.wishlist_repository = wishlist_repository
        self.product_repository = product_repository

    async def add(self, user: User, product_id: UUID) -> bool:
        """Add a product; adding it twice is not an error."""
        if await self.product_repository.get_by_id(product_id) is None:
            raise ProductNotFoundException(str(product_id))
        added = await self.wishlist_repository.add(WishlistItem(user_id=user.user_id, product_id=product_id))
        if added:
            logger.info(f"User {user.user_id} added product {product_id} to wishlist")
        return True

    async def remove(self, user: User, product_id: UUID) -> bool:
        return await self.wishlist_repository.remove(user.user_id, product_id)

    async def toggle(self, user: User, product_id: UUID) -> bool:
        """Flip membership and return whether the product is now listed."""
        if await self.wishlist_repository.exists(user.user_id, product_id):
            await self.wishlist_repository.remove(user.user_id, product_id)
            return False
        return await self.add(user, product_id)

    async def contains(self, user: User, product_id: UUID) -> bool:
        return await self.wishlist_repository.exists(user.user_id, product_id)

    async def list_products(self, user: User) -> List[Product]:
        products = []
        for item in await self.wishlist_repository.list_by_user(user.user_id):
            product = await self.product_repository.get_by_id(item.product_id)
            if product is not None:
                products.append(product)
        return products
