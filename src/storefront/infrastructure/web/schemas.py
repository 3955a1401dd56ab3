"""Pydantic request/response schemas for the HTTP API.

These are external contracts, kept separate from the application DTOs.
Field names on the wire are camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.model.order import OrderStatus
from storefront.domain.model.returns import ReturnReason, ReturnStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SweepResponse(_CamelModel):
    updated_count: int = Field(alias="updatedCount")
    order_ids: list[int] = Field(alias="orderIds")


class BulkReturnRequest(_CamelModel):
    order_item_ids: list[int] = Field(alias="orderItemIds", min_length=1)
    reason: ReturnReason
    details: str | None = Field(default=None, max_length=2000)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "orderItemIds": [11, 12],
                    "reason": "DAMAGED_OR_DEFECTIVE",
                    "details": "Cover torn on arrival",
                }
            ]
        },
    )


class BulkReturnResponse(_CamelModel):
    created: int
    return_ids: list[int] = Field(alias="returnIds")
    order_number: str = Field(alias="orderNumber")


class TransitionRequest(BaseModel):
    status: OrderStatus
    actor: str = Field(min_length=1)
    note: str | None = None


class ReopenRequest(BaseModel):
    actor: str = Field(min_length=1)
    note: str | None = None


class ReturnStatusRequest(BaseModel):
    status: ReturnStatus


class ReturnStatusResponse(_CamelModel):
    id: int
    status: ReturnStatus
    order_item_id: int = Field(alias="orderItemId")


class ApproveReturnsRequest(_CamelModel):
    return_ids: list[int] = Field(alias="returnIds", min_length=1)


class ApprovedOrderSchema(_CamelModel):
    order_id: int = Field(alias="orderId")
    order_number: str = Field(alias="orderNumber")
    item_count: int = Field(alias="itemCount")
    return_ids: list[int] = Field(alias="returnIds")


class ApproveReturnsResponse(_CamelModel):
    processed_orders: list[ApprovedOrderSchema] = Field(alias="processedOrders")
    total_returns: int = Field(alias="totalReturns")
    total_orders: int = Field(alias="totalOrders")


class IssuedTokenSchema(_CamelModel):
    token: str
    order_item_id: int = Field(alias="orderItemId")
    file_name: str = Field(alias="fileName")
    download_url: str = Field(alias="downloadUrl")
    expires_at: str = Field(alias="expiresAt")


class ErrorResponse(BaseModel):
    error: str
