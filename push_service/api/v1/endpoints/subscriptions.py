from fastapi import APIRouter, Depends, HTTPException, status

from push_service.api import deps
from push_service.core.config import settings
from push_service.core.exceptions import ValidationError
from push_service.schemas.common import ApiResponse
from push_service.schemas.subscription import (
    SubscribeRequest,
    SubscribeResponse,
    UnsubscribeAllResponse,
    UnsubscribeResponse,
    UserSubscriptionSummary,
)
from push_service.services.notification import NotificationService

router = APIRouter()

@router.get("/vapid-public-key")
def get_vapid_public_key():
    if not settings.VAPID_PUBLIC_KEY:
        raise HTTPException(500, "VAPID is not configured.")
    return ApiResponse(data={"publicKey": settings.VAPID_PUBLIC_KEY})

@router.post(
    "/users/{user_id}/subscriptions",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse[SubscribeResponse],
)
def subscribe(
    sub_in: SubscribeRequest,
    user_id: str = Depends(deps.validate_user_id),
    service: NotificationService = Depends(deps.get_subscription_service),
):
    """Registers (or re-registers) one browser for the user."""
    if sub_in.subscription is None:
        raise ValidationError("subscription is required")

    sub = service.subscribe(user_id, sub_in.subscription, sub_in.device_info)
    return ApiResponse(data=SubscribeResponse(
        user_id=sub.user_id,
        endpoint=sub.endpoint,
        subscribed_at=sub.subscribed_at,
    ))

@router.get(
    "/users/{user_id}/subscriptions",
    response_model=ApiResponse[UserSubscriptionSummary],
    response_model_exclude_none=True,
)
def get_user_subscriptions(
    user_id: str = Depends(deps.validate_user_id),
    service: NotificationService = Depends(deps.get_subscription_service),
):
    return ApiResponse(data=service.get_user_subscriptions(user_id))

# `:path` because endpoints are URLs; clients still percent-encode them
@router.delete(
    "/users/{user_id}/subscriptions/{endpoint:path}",
    response_model=ApiResponse[UnsubscribeResponse],
)
def unsubscribe_device(
    endpoint: str,
    user_id: str = Depends(deps.validate_user_id),
    service: NotificationService = Depends(deps.get_subscription_service),
):
    sub = service.unsubscribe(user_id, endpoint)
    if not sub:
        raise HTTPException(status_code=404, detail="Subscription not found")

    return ApiResponse(data=UnsubscribeResponse(user_id=sub.user_id, endpoint=sub.endpoint))

@router.delete(
    "/users/{user_id}/subscriptions",
    response_model=ApiResponse[UnsubscribeAllResponse],
)
def unsubscribe_all_devices(
    user_id: str = Depends(deps.validate_user_id),
    service: NotificationService = Depends(deps.get_subscription_service),
):
    count = service.unsubscribe_all_devices(user_id)
    return ApiResponse(data=UnsubscribeAllResponse(user_id=user_id, devices_unsubscribed=count))
