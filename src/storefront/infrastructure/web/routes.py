"""FastAPI routes — downloads, order lifecycle and returns."""

from __future__ import annotations

from dataclasses import asdict

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from storefront.application.approve_returns import ApproveReturnsHandler
from storefront.application.auto_complete_orders import AutoCompleteOrdersHandler
from storefront.application.clock import Clock
from storefront.application.create_returns import CreateReturnsHandler
from storefront.application.issue_download_tokens import IssueDownloadTokensHandler
from storefront.application.ports import FileOrigin, Notifier
from storefront.application.redeem_download import RedeemDownloadHandler
from storefront.application.transition_order import TransitionOrderHandler
from storefront.application.update_return_status import UpdateReturnStatusHandler
from storefront.domain.exceptions import DownloadError
from storefront.domain.model.value_objects import RequestContext
from storefront.domain.repository.download_repository import (
    DigitalFileRepository,
    DownloadTokenRepository,
)
from storefront.domain.repository.order_repository import OrderRepository
from storefront.domain.repository.return_repository import ReturnRepository
from storefront.infrastructure.web.dependencies import (
    get_clock,
    get_file_origin,
    get_file_repo,
    get_link_ttl_days,
    get_notifier,
    get_order_repo,
    get_public_base_url,
    get_return_repo,
    get_token_repo,
)
from storefront.infrastructure.web.schemas import (
    ApprovedOrderSchema,
    ApproveReturnsRequest,
    ApproveReturnsResponse,
    BulkReturnRequest,
    BulkReturnResponse,
    ErrorResponse,
    IssuedTokenSchema,
    ReopenRequest,
    ReturnStatusRequest,
    ReturnStatusResponse,
    SweepResponse,
    TransitionRequest,
)

logger = structlog.get_logger(__name__)

INTERNAL_ERROR = {"error": "Internal server error"}


def _request_context(request: Request) -> RequestContext:
    forwarded_for = request.headers.get("x-forwarded-for")
    real_ip = request.headers.get("x-real-ip")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    elif real_ip:
        ip_address = real_ip
    elif request.client is not None:
        ip_address = request.client.host
    else:
        ip_address = "Unknown"
    return RequestContext(
        ip_address=ip_address or "Unknown",
        user_agent=request.headers.get("user-agent", "Unknown"),
    )


# ---------------------------------------------------------------------------
# Download Router
# ---------------------------------------------------------------------------
download_router = APIRouter(tags=["downloads"])


@download_router.get(
    "/download/{token}",
    responses={
        code: {"model": ErrorResponse}
        for code in (404, 410, 429, 500, 503)
    },
)
def download(
    token: str,
    request: Request,
    order_repo: OrderRepository = Depends(get_order_repo),
    file_repo: DigitalFileRepository = Depends(get_file_repo),
    token_repo: DownloadTokenRepository = Depends(get_token_repo),
    origin: FileOrigin = Depends(get_file_origin),
    clock: Clock = Depends(get_clock),
) -> Response:
    handler = RedeemDownloadHandler(order_repo, file_repo, token_repo, origin, clock)
    try:
        downloaded = handler.handle(token, _request_context(request))
    except DownloadError as exc:
        logger.info(
            "Download refused",
            reason=type(exc).__name__,
            detail=str(exc),
            status_code=exc.status_code,
        )
        return JSONResponse({"error": exc.public_message}, status_code=exc.status_code)
    except Exception:
        logger.exception("Download endpoint failed")
        return JSONResponse(INTERNAL_ERROR, status_code=500)

    return Response(content=downloaded.content, headers=downloaded.headers)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/auto-complete", response_model=SweepResponse)
def auto_complete(
    order_repo: OrderRepository = Depends(get_order_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    # Trusted-scheduler endpoint; restrict callers at the deployment edge.
    try:
        summary = AutoCompleteOrdersHandler(order_repo, notifier, clock).handle()
    except Exception:
        logger.exception("Auto-complete sweep failed")
        return JSONResponse(INTERNAL_ERROR, status_code=500)
    return SweepResponse(updated_count=summary.updated_count, order_ids=summary.order_ids)


@order_router.patch("/{order_id}/status")
def transition_order(
    order_id: int,
    body: TransitionRequest,
    order_repo: OrderRepository = Depends(get_order_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> dict:
    handler = TransitionOrderHandler(order_repo, notifier, clock)
    dto = handler.handle(order_id, body.status, actor=body.actor, note=body.note)
    return asdict(dto)


@order_router.post("/{order_id}/reopen")
def reopen_order(
    order_id: int,
    body: ReopenRequest,
    order_repo: OrderRepository = Depends(get_order_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
) -> dict:
    handler = TransitionOrderHandler(order_repo, notifier, clock)
    return asdict(handler.reopen(order_id, actor=body.actor, note=body.note))


@order_router.post(
    "/{order_id}/download-tokens",
    status_code=201,
    response_model=list[IssuedTokenSchema],
)
def issue_download_tokens(
    order_id: int,
    order_repo: OrderRepository = Depends(get_order_repo),
    file_repo: DigitalFileRepository = Depends(get_file_repo),
    token_repo: DownloadTokenRepository = Depends(get_token_repo),
    clock: Clock = Depends(get_clock),
    ttl_days: int = Depends(get_link_ttl_days),
    base_url: str = Depends(get_public_base_url),
):
    handler = IssueDownloadTokensHandler(order_repo, file_repo, token_repo, clock, ttl_days)
    return [
        IssuedTokenSchema(
            token=t.token,
            order_item_id=t.order_item_id,
            file_name=t.file_name,
            download_url=f"{base_url}{t.download_path}",
            expires_at=t.expires_at,
        )
        for t in handler.handle(order_id)
    ]


# ---------------------------------------------------------------------------
# Return Router
# ---------------------------------------------------------------------------
return_router = APIRouter(prefix="/returns", tags=["returns"])


@return_router.post("/bulk", status_code=201, response_model=BulkReturnResponse)
def create_bulk_returns(
    body: BulkReturnRequest,
    order_repo: OrderRepository = Depends(get_order_repo),
    return_repo: ReturnRepository = Depends(get_return_repo),
    notifier: Notifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock),
):
    handler = CreateReturnsHandler(order_repo, return_repo, notifier, clock)
    batch = handler.handle(body.order_item_ids, body.reason, body.details)
    return BulkReturnResponse(
        created=batch.item_count,
        return_ids=batch.return_ids,
        order_number=batch.order_number,
    )


@return_router.patch("/{return_id}/status", response_model=ReturnStatusResponse)
def update_return_status(
    return_id: int,
    body: ReturnStatusRequest,
    return_repo: ReturnRepository = Depends(get_return_repo),
    order_repo: OrderRepository = Depends(get_order_repo),
    notifier: Notifier = Depends(get_notifier),
):
    handler = UpdateReturnStatusHandler(return_repo, order_repo, notifier)
    request = handler.handle(return_id, body.status)
    return ReturnStatusResponse(
        id=request.id,  # type: ignore[arg-type]
        status=request.status,
        order_item_id=request.order_item_id,
    )


@return_router.post("/bulk-approve", response_model=ApproveReturnsResponse)
def approve_returns(
    body: ApproveReturnsRequest,
    return_repo: ReturnRepository = Depends(get_return_repo),
    order_repo: OrderRepository = Depends(get_order_repo),
    notifier: Notifier = Depends(get_notifier),
):
    summary = ApproveReturnsHandler(return_repo, order_repo, notifier).handle(body.return_ids)
    return ApproveReturnsResponse(
        processed_orders=[
            ApprovedOrderSchema(
                order_id=o.order_id,
                order_number=o.order_number,
                item_count=o.item_count,
                return_ids=o.return_ids,
            )
            for o in summary.processed_orders
        ],
        total_returns=summary.total_returns,
        total_orders=summary.total_orders,
    )
