from typing import Any, Dict, List, Optional
from pydantic import Field
from push_service.schemas.common import CamelModel

class NotificationAction(CamelModel):
    action: str
    title: str
    icon: Optional[str] = None

class NotificationPayload(CamelModel):
    title: str = Field(min_length=1)
    body: str
    icon: Optional[str] = None
    badge: Optional[str] = None
    image: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    actions: Optional[List[NotificationAction]] = None

class SendNotificationRequest(CamelModel):
    notification: Optional[NotificationPayload] = None

class SendResult(CamelModel):
    sent: int = 0
    failed: int = 0

class SendToUserResponse(CamelModel):
    user_id: str
    devices_notified: int
    devices_failed: int

class BroadcastDetail(CamelModel):
    user_id: str
    devices_notified: int
    devices_failed: int

class BroadcastResult(CamelModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    details: List[BroadcastDetail] = []
