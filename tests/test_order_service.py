"""Tests for OrderService."""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock
from uuid import uuid4

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
    Order,
    OrderItemRequest,
    OrderStatus,
    PaymentStatus,
    Product,
    UpdateOrderStatusRequest,
    User,
)
from marketplace.infrastructure.repositories import (
    CounterRepository,
    OrderRepository,
    ProductRepository,
)
from marketplace.infrastructure.repositories_postgres import PostgresOrderRepository
from marketplace.services.order_service import OrderService
from marketplace.utils import now


def checkout(*lines: OrderItemRequest, **overrides) -> CreateOrderRequest:
    data = {
        "customer_name": "Amine Benali",
        "customer_email": "amine@example.dz",
        "customer_phone": "0555123456",
        "customer_address": "12 rue Didouche Mourad",
        "customer_wilaya": "Alger",
        "items": list(lines),
    }
    data.update(overrides)
    return CreateOrderRequest(**data)


@pytest.mark.asyncio
async def test_create_order_prices_from_catalog(
    order_service: OrderService,
    order_repository: PostgresOrderRepository,
    make_product,
    importateur: User,
) -> None:
    """Test order totals come from stored product prices."""
    # Arrange
    sauvage = await make_product("Sauvage", price=12000.0, seller_id=importateur.user_id)
    miss = await make_product("Miss Dior", price=9500.0, seller_id=importateur.user_id)

    # Act
    response = await order_service.create_order(
        checkout(
            OrderItemRequest(product_id=sauvage.product_id, quantity=2),
            OrderItemRequest(product_id=miss.product_id, quantity=1),
        )
    )

    # Assert
    assert response.success is True
    assert response.order_number == "ZST-001001"
    assert response.total == 33500.0

    order = await order_repository.get_by_id(response.order_id)
    assert order.status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.seller_id == importateur.user_id
    assert order.user_id is None
    assert sorted(item.subtotal for item in order.items) == [9500.0, 24000.0]
    assert {item.product_name for item in order.items} == {"Sauvage", "Miss Dior"}


@pytest.mark.asyncio
async def test_order_numbers_increase(
    order_service: OrderService,
    make_product,
    customer: User,
) -> None:
    """Test consecutive orders get consecutive numbers."""
    product = await make_product()
    request = checkout(OrderItemRequest(product_id=product.product_id, quantity=1))

    first = await order_service.create_order(request, customer)
    second = await order_service.create_order(request, customer)

    assert first.order_number == "ZST-001001"
    assert second.order_number == "ZST-001002"


@pytest.mark.asyncio
async def test_create_order_links_user_and_mixed_sellers(
    order_service: OrderService,
    order_repository: PostgresOrderRepository,
    make_product,
    customer: User,
    importateur: User,
    grossiste: User,
) -> None:
    """Test an order spanning several sellers has no single seller."""
    first = await make_product("Sauvage", seller_id=importateur.user_id)
    second = await make_product("Fahrenheit", seller_id=grossiste.user_id)

    response = await order_service.create_order(
        checkout(
            OrderItemRequest(product_id=first.product_id, quantity=1),
            OrderItemRequest(product_id=second.product_id, quantity=1),
        ),
        customer,
    )

    order = await order_repository.get_by_id(response.order_id)
    assert order.user_id == customer.user_id
    assert order.seller_id is None


@pytest.mark.asyncio
async def test_create_order_missing_customer_info(order_service: OrderService, make_product) -> None:
    """Test missing customer fields are rejected."""
    product = await make_product()

    with pytest.raises(ValidationException) as exc_info:
        await order_service.create_order(
            checkout(OrderItemRequest(product_id=product.product_id, quantity=1), customer_wilaya="  ")
        )
    assert exc_info.value.code == "MISSING_CUSTOMER_INFO"


@pytest.mark.asyncio
async def test_create_order_without_items(order_service: OrderService) -> None:
    """Test an empty cart is rejected."""
    with pytest.raises(ValidationException) as exc_info:
        await order_service.create_order(checkout())
    assert exc_info.value.code == "EMPTY_ORDER"


@pytest.mark.asyncio
async def test_create_order_invalid_quantity(order_service: OrderService, make_product) -> None:
    """Test zero quantities are rejected."""
    product = await make_product()

    with pytest.raises(ValidationException) as exc_info:
        await order_service.create_order(checkout(OrderItemRequest(product_id=product.product_id, quantity=0)))
    assert exc_info.value.code == "INVALID_QUANTITY"


@pytest.mark.asyncio
async def test_create_order_unknown_product(order_service: OrderService) -> None:
    """Test ordering a product that does not exist."""
    with pytest.raises(ProductNotFoundException):
        await order_service.create_order(checkout(OrderItemRequest(product_id=uuid4(), quantity=1)))


@pytest.mark.asyncio
async def test_create_order_out_of_stock(order_service: OrderService, make_product) -> None:
    """Test ordering an out of stock product."""
    product = await make_product(in_stock=False)

    with pytest.raises(ProductOutOfStockException):
        await order_service.create_order(checkout(OrderItemRequest(product_id=product.product_id, quantity=1)))


@pytest.mark.asyncio
async def test_create_order_below_minimum_quantity(
    order_service: OrderService,
    order_repository: PostgresOrderRepository,
    make_product,
) -> None:
    """Test a line under the product's minimum order quantity is refused."""
    product = await make_product("Oud", min_quantity=3)

    with pytest.raises(ValidationException) as exc_info:
        await order_service.create_order(checkout(OrderItemRequest(product_id=product.product_id, quantity=2)))

    assert exc_info.value.code == "QUANTITY_BELOW_MINIMUM"
    assert exc_info.value.message == "Minimum order quantity for Oud is 3"
    assert await order_repository.list_all() == []
    accepted = await order_service.create_order(
        checkout(OrderItemRequest(product_id=product.product_id, quantity=3))
    )
    assert accepted.total == 36000.0


@pytest.mark.asyncio
async def test_create_order_deletes_order_when_items_fail() -> None:
    """Test the order row is removed again when its items cannot be written."""
    # Arrange
    product = Product(slug="dior-sauvage", name="Sauvage", brand="Dior", price=100.0, category="perfume")
    order_repository = AsyncMock(spec=OrderRepository)
    order_repository.create = AsyncMock(side_effect=lambda order: order)
    order_repository.add_items = AsyncMock(side_effect=RuntimeError("connection reset"))
    product_repository = AsyncMock(spec=ProductRepository)
    product_repository.get_by_id = AsyncMock(return_value=product)
    counter_repository = AsyncMock(spec=CounterRepository)
    counter_repository.next_value = AsyncMock(return_value=1001)
    service = OrderService(order_repository, product_repository, counter_repository)

    # Act
    with pytest.raises(OrderPersistenceException) as exc_info:
        await service.create_order(checkout(OrderItemRequest(product_id=product.product_id, quantity=1)))

    # Assert
    assert exc_info.value.message == "Failed to create order items"
    created = order_repository.create.call_args.args[0]
    order_repository.delete.assert_called_once_with(created.order_id)


@pytest.mark.asyncio
async def test_create_order_insert_failure() -> None:
    """Test a failed order insert surfaces as a persistence error."""
    product = Product(slug="dior-sauvage", name="Sauvage", brand="Dior", price=100.0, category="perfume")
    order_repository = AsyncMock(spec=OrderRepository)
    order_repository.create = AsyncMock(side_effect=RuntimeError("unique violation"))
    product_repository = AsyncMock(spec=ProductRepository)
    product_repository.get_by_id = AsyncMock(return_value=product)
    counter_repository = AsyncMock(spec=CounterRepository)
    counter_repository.next_value = AsyncMock(return_value=1001)
    service = OrderService(order_repository, product_repository, counter_repository)

    with pytest.raises(OrderPersistenceException):
        await service.create_order(checkout(OrderItemRequest(product_id=product.product_id, quantity=1)))

    order_repository.add_items.assert_not_called()
    order_repository.delete.assert_not_called()


# --- Status updates ---


@pytest.fixture
async def placed_order(order_service: OrderService, order_repository: PostgresOrderRepository, make_product, importateur: User) -> Order:
    product = await make_product(seller_id=importateur.user_id)
    response = await order_service.create_order(checkout(OrderItemRequest(product_id=product.product_id, quantity=1)))
    return await order_repository.get_by_id(response.order_id)


@pytest.mark.asyncio
async def test_update_order_status_by_seller(
    order_service: OrderService,
    order_repository: PostgresOrderRepository,
    placed_order: Order,
    importateur: User,
) -> None:
    """Test the seller ships an order with a tracking number."""
    # Act
    response = await order_service.update_order_status(
        importateur,
        UpdateOrderStatusRequest(order_id=placed_order.order_id, status="shipped", tracking_number="YAL-42"),
    )

    # Assert
    assert response.new_status == OrderStatus.SHIPPED
    order = await order_repository.get_by_id(placed_order.order_id)
    assert order.status == OrderStatus.SHIPPED
    assert order.tracking_number == "YAL-42"
    assert order.payment_status == PaymentStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "new_status, payment_status",
    [("delivered", PaymentStatus.PAID), ("cancelled", PaymentStatus.REFUNDED)],
)
async def test_update_order_status_sets_payment(
    order_service: OrderService,
    order_repository: PostgresOrderRepository,
    placed_order: Order,
    admin: User,
    new_status: str,
    payment_status: PaymentStatus,
) -> None:
    """Test final statuses drive the payment status."""
    await order_service.update_order_status(
        admin, UpdateOrderStatusRequest(order_id=placed_order.order_id, status=new_status)
    )

    order = await order_repository.get_by_id(placed_order.order_id)
    assert order.payment_status == payment_status


@pytest.mark.asyncio
async def test_update_order_status_invalid_value(
    order_service: OrderService,
    placed_order: Order,
    admin: User,
) -> None:
    """Test unknown status values are rejected."""
    with pytest.raises(InvalidOrderStatusException):
        await order_service.update_order_status(
            admin, UpdateOrderStatusRequest(order_id=placed_order.order_id, status="lost")
        )


@pytest.mark.asyncio
async def test_update_order_status_missing_fields(order_service: OrderService, admin: User) -> None:
    """Test order id and status are both required."""
    with pytest.raises(ValidationException) as exc_info:
        await order_service.update_order_status(admin, UpdateOrderStatusRequest(status="shipped"))
    assert exc_info.value.code == "MISSING_FIELDS"


@pytest.mark.asyncio
async def test_update_order_status_not_found(order_service: OrderService, admin: User) -> None:
    """Test updating an unknown order."""
    with pytest.raises(OrderNotFoundException):
        await order_service.update_order_status(
            admin, UpdateOrderStatusRequest(order_id=uuid4(), status="shipped")
        )


@pytest.mark.asyncio
async def test_update_order_status_other_seller(
    order_service: OrderService,
    placed_order: Order,
    grossiste: User,
) -> None:
    """Test a seller cannot update another seller's order."""
    with pytest.raises(PermissionDeniedException):
        await order_service.update_order_status(
            grossiste, UpdateOrderStatusRequest(order_id=placed_order.order_id, status="shipped")
        )


# --- Reads ---


@pytest.mark.asyncio
async def test_get_order_visibility(
    order_service: OrderService,
    placed_order: Order,
    importateur: User,
    customer: User,
) -> None:
    """Test the seller sees the order and an unrelated customer does not."""
    assert (await order_service.get_order(importateur, placed_order.order_id)).order_id == placed_order.order_id
    with pytest.raises(OrderNotFoundException):
        await order_service.get_order(customer, placed_order.order_id)


@pytest.mark.asyncio
async def test_list_orders(
    order_service: OrderService,
    make_product,
    customer: User,
    importateur: User,
) -> None:
    """Test customer and seller order listings."""
    product = await make_product(seller_id=importateur.user_id)
    response = await order_service.create_order(
        checkout(OrderItemRequest(product_id=product.product_id, quantity=3)), customer
    )

    mine = await order_service.list_my_orders(customer)
    sold = await order_service.list_seller_orders(importateur)
    by_number = await order_service.get_order_by_number(customer, response.order_number)

    assert [o.order_id for o in mine] == [response.order_id]
    assert [o.order_id for o in sold] == [response.order_id]
    assert by_number.items[0].quantity == 3


# --- Seller dashboard ---


@pytest.mark.asyncio
async def test_seller_dashboard(
    order_service: OrderService,
    make_product,
    importateur: User,
    admin: User,
) -> None:
    """Test counts, paid revenue and top products for a seller."""
    # Arrange
    sauvage = await make_product("Sauvage", price=12000.0, seller_id=importateur.user_id)
    miss = await make_product("Miss Dior", price=9500.0, seller_id=importateur.user_id)
    await make_product("Oud", seller_id=importateur.user_id, in_stock=False)
    await make_product("Fahrenheit")

    first = await order_service.create_order(checkout(OrderItemRequest(product_id=sauvage.product_id, quantity=2)))
    second = await order_service.create_order(
        checkout(
            OrderItemRequest(product_id=miss.product_id, quantity=1),
            OrderItemRequest(product_id=sauvage.product_id, quantity=1),
        )
    )
    await order_service.create_order(checkout(OrderItemRequest(product_id=miss.product_id, quantity=1)))
    for placed in (first, second):
        await order_service.update_order_status(
            admin, UpdateOrderStatusRequest(order_id=placed.order_id, status="delivered")
        )

    # Act
    dashboard = await order_service.get_seller_dashboard(importateur)

    # Assert
    assert (dashboard.total_products, dashboard.active_products, dashboard.out_of_stock_products) == (3, 2, 1)
    assert dashboard.total_orders == 3
    assert dashboard.pending_orders == 1
    assert dashboard.orders_by_status[OrderStatus.DELIVERED] == 2
    assert dashboard.orders_by_status[OrderStatus.CANCELLED] == 0
    assert dashboard.total_revenue == 45500.0
    assert dashboard.monthly_revenue == 45500.0
    assert dashboard.average_order_value == pytest.approx(45500.0 / 3)
    assert len(dashboard.recent_orders) == 3
    assert [(p.product_name, p.total_quantity, p.total_revenue) for p in dashboard.top_products] == [
        ("Sauvage", 3, 36000.0),
        ("Miss Dior", 1, 9500.0),
    ]


@pytest.mark.asyncio
async def test_seller_dashboard_monthly_window(
    order_service: OrderService,
    placed_order: Order,
    importateur: User,
    admin: User,
) -> None:
    """Test revenue older than 30 days drops out of the monthly figure."""
    await order_service.update_order_status(
        admin, UpdateOrderStatusRequest(order_id=placed_order.order_id, status="delivered")
    )

    dashboard = await order_service.get_seller_dashboard(importateur, at=now() + timedelta(days=31))

    assert dashboard.total_revenue == 12000.0
    assert dashboard.monthly_revenue == 0.0


@pytest.mark.asyncio
async def test_seller_dashboard_empty(order_service: OrderService, grossiste: User) -> None:
    """Test a seller without products or orders gets zeros."""
    dashboard = await order_service.get_seller_dashboard(grossiste)

    assert dashboard.total_orders == 0
    assert dashboard.average_order_value == 0.0
    assert dashboard.recent_orders == []
    assert dashboard.top_products == []


@pytest.mark.asyncio
async def test_seller_dashboard_customer_denied(order_service: OrderService, customer: User) -> None:
    """Test customers have no seller dashboard."""
    with pytest.raises(PermissionDeniedException) as exc_info:
        await order_service.get_seller_dashboard(customer)
    assert exc_info.value.code == "NOT_A_SELLER"
