# orderahead/api/routers/push.py
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from orderahead.api.deps import get_owner, http_error
from orderahead.data.database import get_db
from orderahead.domain.context import OwnerContext
from orderahead.domain.errors import OrderAheadError
from orderahead.domain.schemas import PushSubscriptionIn, PushSubscriptionOut, VapidKeyOut
from orderahead.services.subscription_service import SubscriptionService
from orderahead.utils.settings import VAPID_PUBLIC_KEY

router = APIRouter(tags=["push"])


@router.get("/push/vapid-public-key", response_model=VapidKeyOut)
def vapid_public_key():
    #browser needs it as applicationServerKey before subscribing
    return {"public_key": VAPID_PUBLIC_KEY}


@router.put("/businesses/{business_id}/push-subscriptions", response_model=PushSubscriptionOut)
def register_subscription(
    business_id: int,
    payload: PushSubscriptionIn,
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        return SubscriptionService(db).register(
            ctx,
            business_id,
            endpoint=payload.endpoint,
            p256dh=payload.keys.p256dh,
            auth=payload.keys.auth,
        )
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)


@router.delete("/businesses/{business_id}/push-subscriptions", status_code=204)
def unregister_subscription(
    business_id: int,
    endpoint: str = Query(..., min_length=1),
    ctx: OwnerContext = Depends(get_owner),
    db: Session = Depends(get_db),
):
    try:
        SubscriptionService(db).unregister(ctx, business_id, endpoint)
    except (OrderAheadError, PermissionError) as e:
        raise http_error(e)
    return Response(status_code=204)
