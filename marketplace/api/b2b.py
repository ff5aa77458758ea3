"""B2B marketplace routes: offers, bids and negotiations."""
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from prometheus_client import Counter, Histogram

from marketplace.api.dependencies import get_current_user, get_offer_service
from marketplace.api.errors import internal_error, to_http_exception, track
from marketplace.domain.exceptions import DomainException
from marketplace.domain.models import (
    CreateOfferRequest,
    Offer,
    OfferDetails,
    OfferFilter,
    OfferPage,
    OfferResponse,
    OfferSort,
    OfferStatistics,
    OfferStatus,
    OfferType,
    ResponseStatus,
    ResponseType,
    SellerStatistics,
    SubmitResponseRequest,
    UpdateOfferRequest,
    User,
)
from marketplace.services.offer_service import OfferService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/b2b", tags=["b2b"])

# Prometheus metrics
offer_created_counter = Counter(
    "b2b_offer_created_total", "Total number of B2B offers created", ["status"]
)
offer_request_counter = Counter(
    "b2b_offer_requests_total", "Total number of B2B offer reads and edits", ["status"]
)
response_submitted_counter = Counter(
    "b2b_response_submitted_total", "Total number of bids and negotiations submitted", ["status"]
)
response_decision_counter = Counter(
    "b2b_response_decision_total", "Total number of accept/reject/withdraw decisions", ["status"]
)
response_submit_duration = Histogram(
    "b2b_response_submit_duration_seconds", "Time spent submitting a response"
)


# --- Offers ---


@router.post("/offers", response_model=Offer, status_code=status.HTTP_201_CREATED)
async def create_offer(
    request: CreateOfferRequest,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> Offer:
    """Publish an auction or negotiable offer to the tier below."""
    with track(offer_created_counter, "offer creation"):
        return await service.create_offer(user, request)


@router.get("/offers", response_model=OfferPage)
async def list_available_offers(
    offer_type: Optional[OfferType] = None,
    offer_status: OfferStatus = OfferStatus.OPEN,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    search: Optional[str] = None,
    sort_by: OfferSort = OfferSort.NEWEST,
    page: int = 1,
    limit: int = 20,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferPage:
    """Marketplace listing for the caller's seller tier."""
    with track(offer_request_counter, "offer listing"):
        filters = OfferFilter(
            offer_type=offer_type,
            status=offer_status,
            min_price=min_price,
            max_price=max_price,
            search=search,
            sort_by=sort_by,
            page=max(page, 1),
            limit=min(max(limit, 1), 100),
        )
        return await service.list_available_offers(user, filters)


@router.get("/offers/mine", response_model=List[OfferDetails])
async def list_my_offers(
    offer_status: Optional[OfferStatus] = None,
    offer_type: Optional[OfferType] = None,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> List[OfferDetails]:
    with track(offer_request_counter, "seller offer listing"):
        return await service.list_my_offers(user, status=offer_status, offer_type=offer_type)


@router.get("/statistics", response_model=SellerStatistics)
async def get_seller_statistics(
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> SellerStatistics:
    with track(offer_request_counter, "seller statistics"):
        return await service.get_seller_statistics(user)


@router.get("/offers/{offer_id}", response_model=OfferDetails)
async def get_offer(
    offer_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferDetails:
    with track(offer_request_counter, "offer retrieval"):
        return await service.get_offer(user, offer_id)


@router.patch("/offers/{offer_id}", response_model=Offer)
async def update_offer(
    offer_id: UUID,
    request: UpdateOfferRequest,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> Offer:
    with track(offer_request_counter, "offer update"):
        return await service.update_offer(user, offer_id, request)


@router.delete("/offers/{offer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_offer(
    offer_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> None:
    with track(offer_request_counter, "offer deletion"):
        await service.delete_offer(user, offer_id)


@router.post("/offers/{offer_id}/close", response_model=Offer)
async def close_offer(
    offer_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> Offer:
    """Close an open offer by hand."""
    with track(offer_request_counter, "offer close"):
        return await service.close_offer(user, offer_id)


@router.get("/offers/{offer_id}/statistics", response_model=OfferStatistics)
async def get_offer_statistics(
    offer_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferStatistics:
    with track(offer_request_counter, "offer statistics"):
        return await service.get_offer_statistics(user, offer_id)


# --- Responses ---


@router.post(
    "/offers/{offer_id}/responses",
    response_model=OfferResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_response(
    offer_id: UUID,
    request: SubmitResponseRequest,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    """Place a bid (auction) or a negotiation (negotiable offer)."""
    try:
        with response_submit_duration.time():
            response = await service.submit_response(user, offer_id, request)
        response_submitted_counter.labels(status="success").inc()
        return response
    except DomainException as e:
        logger.warning(f"Response on offer {offer_id} rejected: {e.message}")
        response_submitted_counter.labels(status=e.code.lower()).inc()
        raise to_http_exception(e)
    except Exception as e:
        logger.exception(f"Unexpected error submitting response on offer {offer_id}: {e}")
        response_submitted_counter.labels(status="internal_error").inc()
        raise internal_error()


@router.get("/offers/{offer_id}/responses", response_model=List[OfferResponse])
async def list_offer_responses(
    offer_id: UUID,
    response_status: Optional[ResponseStatus] = None,
    response_type: Optional[ResponseType] = None,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> List[OfferResponse]:
    with track(offer_request_counter, "offer responses listing"):
        return await service.list_offer_responses(
            user, offer_id, status=response_status, response_type=response_type
        )


@router.get("/offers/{offer_id}/bids", response_model=List[OfferResponse])
async def get_bid_history(
    offer_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> List[OfferResponse]:
    with track(offer_request_counter, "bid history"):
        return await service.get_bid_history(user, offer_id)


@router.get("/offers/{offer_id}/responded")
async def has_user_responded(
    offer_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> dict:
    with track(offer_request_counter, "response check"):
        return {"has_responded": await service.has_user_responded(user, offer_id)}


@router.get("/responses/mine", response_model=List[OfferResponse])
async def list_my_responses(
    response_status: Optional[ResponseStatus] = None,
    response_type: Optional[ResponseType] = None,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> List[OfferResponse]:
    with track(offer_request_counter, "buyer responses listing"):
        return await service.list_my_responses(user, status=response_status, response_type=response_type)


@router.post("/responses/{response_id}/accept", response_model=OfferResponse)
async def accept_response(
    response_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    """Accept a response; the offer is closed."""
    with track(response_decision_counter, "response acceptance"):
        return await service.accept_response(user, response_id)


@router.post("/responses/{response_id}/reject", response_model=OfferResponse)
async def reject_response(
    response_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    with track(response_decision_counter, "response rejection"):
        return await service.reject_response(user, response_id)


@router.post("/responses/{response_id}/withdraw", response_model=OfferResponse)
async def withdraw_response(
    response_id: UUID,
    user: User = Depends(get_current_user),
    service: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    with track(response_decision_counter, "response withdrawal"):
        return await service.withdraw_response(user, response_id)
