"""Order routes: checkout, fulfilment and exports."""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from prometheus_client import Counter, Histogram

from marketplace.api.dependencies import (
    get_current_admin,
    get_current_user,
    get_export_service,
    get_optional_user,
    get_order_service,
)
from marketplace.api.errors import internal_error, to_http_exception, track
from marketplace.domain.exceptions import DomainException
from marketplace.domain.models import (
    CreateOrderRequest,
    CreateOrderResponse,
    ExportRequest,
    Order,
    SellerDashboard,
    UpdateOrderStatusRequest,
    UpdateOrderStatusResponse,
    User,
)
from marketplace.services.export_service import ExportService
from marketplace.services.order_service import OrderService

logger = logging.getLogger(__name__)

functions_router = APIRouter(prefix="/functions", tags=["orders"])
router = APIRouter(prefix="/api", tags=["orders"])

# Prometheus metrics
order_created_counter = Counter(
    "order_created_total", "Total number of orders created", ["status"]
)
order_status_counter = Counter(
    "order_status_update_total", "Total number of order status updates", ["status"]
)
order_get_counter = Counter(
    "order_get_total", "Total number of order retrievals", ["status"]
)
export_counter = Counter(
    "export_total", "Total number of data exports", ["status"]
)
seller_stats_counter = Counter(
    "seller_stats_total", "Total number of seller dashboard reads", ["status"]
)
order_creation_duration = Histogram(
    "order_creation_duration_seconds", "Time spent creating orders"
)


@functions_router.post(
    "/create-order", response_model=CreateOrderResponse, status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    user: Optional[User] = Depends(get_optional_user),
    service: OrderService = Depends(get_order_service),
) -> CreateOrderResponse:
    """Create an order from the storefront cart.

    Guests may order; an authenticated caller is linked to the order.
    """
    try:
        with order_creation_duration.time():
            response = await service.create_order(request, user)
        order_created_counter.labels(status="success").inc()
        return response
    except DomainException as e:
        logger.warning(f"Order creation failed: {e.message}")
        order_created_counter.labels(status=e.code.lower()).inc()
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Unexpected error creating order: {e}")
        order_created_counter.labels(status="internal_error").inc()
        raise internal_error()


@functions_router.post("/update-order-status", response_model=UpdateOrderStatusResponse)
async def update_order_status(
    request: UpdateOrderStatusRequest,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> UpdateOrderStatusResponse:
    """Update the fulfilment status of an order."""
    with track(order_status_counter, "order status update"):
        return await service.update_order_status(user, request)


@functions_router.post("/export-data", response_class=PlainTextResponse)
async def export_data(
    request: ExportRequest,
    admin: User = Depends(get_current_admin),
    service: ExportService = Depends(get_export_service),
) -> PlainTextResponse:
    """Download orders or products as a TXT report."""
    with track(export_counter, "data export"):
        filename, content = await service.export(request.type)
        logger.info(f"Admin {admin.user_id} exported {request.type}")
        return PlainTextResponse(
            content,
            media_type="text/plain; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )


@router.get("/orders", response_model=List[Order])
async def list_my_orders(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> List[Order]:
    with track(order_get_counter, "order listing"):
        return await service.list_my_orders(user)


@router.get("/seller/orders", response_model=List[Order])
async def list_seller_orders(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> List[Order]:
    with track(order_get_counter, "seller order listing"):
        return await service.list_seller_orders(user)


@router.get("/seller/stats", response_model=SellerDashboard)
async def get_seller_dashboard(
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> SellerDashboard:
    """Product, order and revenue figures for the calling seller."""
    with track(seller_stats_counter, "seller statistics"):
        return await service.get_seller_dashboard(user)


@router.get("/orders/number/{order_number}", response_model=Order)
async def get_order_by_number(
    order_number: str,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> Order:
    with track(order_get_counter, "order retrieval"):
        return await service.get_order_by_number(user, order_number)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(
    order_id: UUID,
    user: User = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> Order:
    with track(order_get_counter, "order retrieval"):
        return await service.get_order(user, order_id)
