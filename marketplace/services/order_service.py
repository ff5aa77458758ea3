"""Storefront order service."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from marketplace.config import settings
from marketplace.domain.exceptions import (
    InvalidOrderStatusException,
    OrderNotFoundException,
    OrderPersistenceException,
    PermissionDeniedException,
    ProductNotFoundException,
    ProductOutOfStockException,
    ValidationException,
)
from marketplace.domain.models import (
    CreateOrderRequest,
    CreateOrderResponse,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    ProductFilter,
    SellerDashboard,
    TopProduct,
    UpdateOrderStatusRequest,
    UpdateOrderStatusResponse,
    User,
    UserRole,
)
from marketplace.infrastructure.repositories import (
    CounterRepository,
    OrderRepository,
    ProductRepository,
)
from marketplace.utils import now

logger = logging.getLogger(__name__)

ORDER_NUMBER_COUNTER = "order_number"

# Payment status implied by an order status change
PAYMENT_FOR_STATUS = {
    OrderStatus.DELIVERED: PaymentStatus.PAID,
    OrderStatus.CANCELLED: PaymentStatus.REFUNDED,
}

DASHBOARD_LIST_LIMIT = 10
DASHBOARD_REVENUE_DAYS = 30


class OrderService:
    """Service for checkout and order fulfilment."""

    def __init__(
        self,
        order_repository: OrderRepository,
        product_repository: ProductRepository,
        counter_repository: CounterRepository,
    ):
        self.order_repository = order_repository
        self.product_repository = product_repository
        self.counter_repository = counter_repository

    async def _next_order_number(self) -> str:
        value = await self.counter_repository.next_value(ORDER_NUMBER_COUNTER, settings.order_number_start)
        return f"{settings.order_number_prefix}{value:0{settings.order_number_width}d}"

    async def create_order(self, request: CreateOrderRequest, user: Optional[User] = None) -> CreateOrderResponse:
        """Create an order and its items.

        Items are priced from the stored products. If the items cannot be
        written the order row is deleted again.
        """
        customer_fields = [
            request.customer_name,
            request.customer_email,
            request.customer_phone,
            request.customer_address,
            request.customer_wilaya,
        ]
        if not all(field and field.strip() for field in customer_fields):
            raise ValidationException("Missing required customer information", code="MISSING_CUSTOMER_INFO")
        if not request.items:
            raise ValidationException("Order must contain at least one item", code="EMPTY_ORDER")

        total = 0.0
        items: List[OrderItem] = []
        seller_ids = set()
        for line in request.items:
            if line.quantity < 1:
                raise ValidationException(f"Invalid quantity for product {line.product_id}", code="INVALID_QUANTITY")

            product = await self.product_repository.get_by_id(line.product_id)
            if product is None:
                raise ProductNotFoundException(str(line.product_id))
            if not product.in_stock:
                raise ProductOutOfStockException(product.name)
            if line.quantity < product.min_quantity:
                raise ValidationException(
                    f"Minimum order quantity for {product.name} is {product.min_quantity}",
                    code="QUANTITY_BELOW_MINIMUM",
                )

            subtotal = product.price * line.quantity
            total += subtotal
            seller_ids.add(product.seller_id)
            items.append(
                OrderItem(
                    product_id=product.product_id,
                    product_name=product.name,
                    product_image=product.image_url,
                    quantity=line.quantity,
                    price=product.price,
                    subtotal=subtotal,
                )
            )

        order = Order(
            order_number=await self._next_order_number(),
            user_id=user.user_id if user else None,
            seller_id=seller_ids.pop() if len(seller_ids) == 1 else None,
            customer_name=request.customer_name.strip(),
            customer_email=request.customer_email.strip(),
            customer_phone=request.customer_phone.strip(),
            customer_address=request.customer_address.strip(),
            customer_wilaya=request.customer_wilaya.strip(),
            total=total,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            notes=request.notes,
        )

        try:
            created = await self.order_repository.create(order)
        except Exception as e:
            logger.exception(f"Error creating order: {e}")
            raise OrderPersistenceException("Failed to create order")

        try:
            await self.order_repository.add_items(created.order_id, items)
        except Exception as e:
            logger.error(f"Error creating order items for {created.order_number}: {e}")
            await self.order_repository.delete(created.order_id)
            raise OrderPersistenceException("Failed to create order items")

        logger.info(f"Order {created.order_number} created with {len(items)} items, total {total}")
        return CreateOrderResponse(
            order_id=created.order_id,
            order_number=created.order_number,
            total=created.total,
        )

    async def update_order_status(self, user: User, request: UpdateOrderStatusRequest) -> UpdateOrderStatusResponse:
        """Move an order to a new status (seller of the order or admin)."""
        if request.order_id is None or not request.status:
            raise ValidationException("Missing required fields: order_id and status", code="MISSING_FIELDS")
        try:
            new_status = OrderStatus(request.status)
        except ValueError:
            raise InvalidOrderStatusException(request.status)

        order = await self.order_repository.get_by_id(request.order_id)
        if order is None:
            raise OrderNotFoundException(str(request.order_id))
        if user.role != UserRole.ADMIN and order.seller_id != user.user_id:
            raise PermissionDeniedException("Only the seller or an admin can update this order")

        changes = {"status": new_status}
        if request.tracking_number:
            changes["tracking_number"] = request.tracking_number
        if request.delivery_date:
            changes["delivery_date"] = request.delivery_date
        if request.notes:
            changes["notes"] = request.notes
        if new_status in PAYMENT_FOR_STATUS:
            changes["payment_status"] = PAYMENT_FOR_STATUS[new_status]

        await self.order_repository.update(order.model_copy(update=changes))
        logger.info(f"Order {order.order_number} status updated to {new_status.value}")

        return UpdateOrderStatusResponse(order_id=order.order_id, new_status=new_status)

    def _can_view(self, user: User, order: Order) -> bool:
        return user.role == UserRole.ADMIN or user.user_id in (order.user_id, order.seller_id)

    async def get_order(self, user: User, order_id: UUID) -> Order:
        order = await self.order_repository.get_by_id(order_id)
        if order is None or not self._can_view(user, order):
            raise OrderNotFoundException(str(order_id))
        return order

    async def get_order_by_number(self, user: User, order_number: str) -> Order:
        order = await self.order_repository.get_by_number(order_number)
        if order is None or not self._can_view(user, order):
            raise OrderNotFoundException(order_number)
        return order

    async def list_my_orders(self, user: User) -> List[Order]:
        return await self.order_repository.list_by_user(user.user_id)

    async def list_seller_orders(self, user: User) -> List[Order]:
        return await self.order_repository.list_by_seller(user.user_id)

    async def get_seller_dashboard(self, user: User, at: Optional[datetime] = None) -> SellerDashboard:
        """Product, order and revenue figures for the calling seller."""
        if user.role not in (UserRole.SELLER, UserRole.ADMIN):
            raise PermissionDeniedException("Only sellers can view seller statistics", code="NOT_A_SELLER")

        at = at or now()
        _, total_products = await self.product_repository.list(ProductFilter(seller_id=user.user_id, limit=1))
        _, active_products = await self.product_repository.list(
            ProductFilter(seller_id=user.user_id, in_stock=True, limit=1)
        )
        orders = await self.order_repository.list_by_seller(user.user_id)
        paid = [o for o in orders if o.payment_status == PaymentStatus.PAID]

        by_status = {order_status: 0 for order_status in OrderStatus}
        for order in orders:
            by_status[order.status] += 1

        total_revenue = sum(o.total for o in paid)
        month_ago = at - timedelta(days=DASHBOARD_REVENUE_DAYS)

        return SellerDashboard(
            total_products=total_products,
            active_products=active_products,
            out_of_stock_products=total_products - active_products,
            total_orders=len(orders),
            pending_orders=by_status[OrderStatus.PENDING],
            orders_by_status=by_status,
            total_revenue=total_revenue,
            monthly_revenue=sum(o.total for o in paid if o.created_at >= month_ago),
            average_order_value=total_revenue / len(orders) if orders else 0.0,
            recent_orders=orders[:DASHBOARD_LIST_LIMIT],
            top_products=_top_products(paid, DASHBOARD_LIST_LIMIT),
        )


def _top_products(orders: List[Order], limit: int) -> List[TopProduct]:
    totals = {}
    for order in orders:
        for item in order.items:
            key = (item.product_id, item.product_name)
            quantity, revenue = totals.get(key, (0, 0.0))
            totals[key] = (quantity + item.quantity, revenue + item.subtotal)

    ranked = sorted(totals.items(), key=lambda entry: entry[1][1], reverse=True)
    return [
        TopProduct(product_id=product_id, product_name=name, total_quantity=quantity, total_revenue=revenue)
        for (product_id, name), (quantity, revenue) in ranked[:limit]
    ]
