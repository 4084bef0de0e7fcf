from __future__ import annotations

from pydantic import BaseModel, Field


class CartLineOut(BaseModel):
    cart_line_id: int
    product_id: int
    offering_id: int
    quantity: int


class CartResponse(BaseModel):
    cart: list[CartLineOut]


class CartAddRequest(BaseModel):
    product_id: int
    offering_id: int
    quantity: int = Field(..., ge=1)


class CartUpdateRequest(BaseModel):
    product_id: int
    offering_id: int | None = None
    quantity: int = Field(..., ge=1)


class CartRemoveRequest(BaseModel):
    product_id: int


class CartCountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str
