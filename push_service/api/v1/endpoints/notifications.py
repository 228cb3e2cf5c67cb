from fastapi import APIRouter, Depends

from push_service.api import deps
from push_service.core.exceptions import ValidationError
from push_service.schemas.common import ApiResponse
from push_service.schemas.notification import (
    BroadcastResult,
    SendNotificationRequest,
    SendToUserResponse,
)
from push_service.services.notification import NotificationService

# Internal API: called by other backends, not by browsers
router = APIRouter()

@router.post(
    "/users/{user_id}/notifications",
    response_model=ApiResponse[SendToUserResponse],
)
async def send_to_user(
    user_id: str,
    body: SendNotificationRequest,
    service: NotificationService = Depends(deps.get_notification_service),
):
    """Pushes the notification to every device of one user."""
    if body.notification is None:
        raise ValidationError("notification payload is required")

    result = await service.send_to_user(user_id, body.notification)
    return ApiResponse(data=SendToUserResponse(
        user_id=user_id,
        devices_notified=result.sent,
        devices_failed=result.failed,
    ))

@router.post(
    "/notifications/broadcast",
    response_model=ApiResponse[BroadcastResult],
)
async def broadcast_to_all(
    body: SendNotificationRequest,
    service: NotificationService = Depends(deps.get_notification_service),
):
    """Pushes the notification to every registered device, grouped per user."""
    if body.notification is None:
        raise ValidationError("notification payload is required")

    result = await service.send_to_all(body.notification)
    return ApiResponse(data=result)
