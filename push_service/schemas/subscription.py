from datetime import datetime
from typing import List, Optional
from pydantic import Field
from push_service.schemas.common import CamelModel

class PushKeys(CamelModel):
    p256dh: str = Field(min_length=1)
    auth: str = Field(min_length=1)

class PushSubscriptionCreate(CamelModel):
    endpoint: str = Field(min_length=1)
    keys: PushKeys
    expiration_time: Optional[int] = None

class DeviceInfo(CamelModel):
    user_agent: Optional[str] = None
    device_type: Optional[str] = None
    browser_name: Optional[str] = None

class SubscribeRequest(CamelModel):
    # Optional so a missing subscription gets the same error as the rest of the API
    subscription: Optional[PushSubscriptionCreate] = None
    device_info: Optional[DeviceInfo] = None

class SubscribeResponse(CamelModel):
    user_id: str
    endpoint: str
    subscribed_at: datetime

class UnsubscribeResponse(CamelModel):
    user_id: str
    endpoint: str

class UnsubscribeAllResponse(CamelModel):
    user_id: str
    devices_unsubscribed: int

class DeviceSummary(CamelModel):
    endpoint: str
    device_info: Optional[DeviceInfo] = None
    subscribed_at: datetime
    last_active_at: datetime

class UserSubscriptionSummary(CamelModel):
    user_id: str
    total_subscriptions: int
    devices: List[DeviceSummary] = []
