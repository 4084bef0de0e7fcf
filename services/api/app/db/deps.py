from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException
from packages.shared.schemas.order_v1 import ActorTypeV1
from services.api.app.db.database import db_session
from sqlalchemy.orm import Session


def get_db() -> Generator[Session, None, None]:
    db = db_session()
    try:
        yield db
    finally:
        db.close()


@dataclass(frozen=True, slots=True)
class Actor:
    id: int
    user_type: str
    role: str | None = None


def get_current_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_type: str | None = Header(default=None),
    x_actor_role: str | None = Header(default=None),
) -> Actor:
    """Identity forwarded by the authenticating gateway.

    Token verification happens upstream; these headers are trusted as-is.
    """

    if not x_actor_id or not x_actor_type:
        raise HTTPException(status_code=401, detail={"error": "unauthenticated"})

    try:
        actor_id = int(x_actor_id)
    except ValueError as e:
        raise HTTPException(status_code=401, detail={"error": "unauthenticated"}) from e

    return Actor(
        id=actor_id,
        user_type=x_actor_type.strip().lower(),
        role=x_actor_role.strip().lower() if x_actor_role else None,
    )


def get_current_customer(actor: Actor = Depends(get_current_actor)) -> Actor:
    if actor.user_type != ActorTypeV1.CUSTOMER.value:
        raise HTTPException(status_code=403, detail={"error": "forbidden"})
    return actor
