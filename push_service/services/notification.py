import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel
from push_service.core.config import settings
from push_service.core.exceptions import (
    DeliveryFailure,
    NotFoundError,
    OperationFailedError,
    PushConfigError,
    StoreError,
)
from push_service.models.subscription import PushSubscription, utcnow
from push_service.schemas.notification import BroadcastDetail, BroadcastResult, SendResult
from push_service.schemas.subscription import (
    DeviceInfo,
    DeviceSummary,
    PushSubscriptionCreate,
    UserSubscriptionSummary,
)
from push_service.services.push import PushSender
from push_service.services.store import SubscriptionStore

logger = logging.getLogger(__name__)

# The push service will never accept another message on these endpoints
GONE_STATUS_CODES = (404, 410)

Payload = Union[BaseModel, Dict[str, Any]]


class NotificationService:
    """Subscription lifecycle plus per-user and broadcast fan-out.

    Deliveries are attempted once. Within a fan-out they run concurrently
    (at most `max_concurrency` in flight) and are joined settle-all: a failed
    device never cancels its siblings and the tally is only returned once
    every attempt finished.
    """

    def __init__(
        self,
        store: SubscriptionStore,
        sender: Optional[PushSender] = None,
        max_concurrency: int = settings.PUSH_MAX_CONCURRENCY,
    ):
        self.store = store
        self.sender = sender
        self.max_concurrency = max(1, max_concurrency)

    # --- LIFECYCLE ---

    def subscribe(
        self,
        user_id: str,
        subscription: PushSubscriptionCreate,
        device_info: Optional[DeviceInfo] = None,
    ) -> PushSubscription:
        """Upsert by endpoint. Re-subscribing moves ownership and refreshes the timestamps."""
        now = utcnow()
        values = {
            "user_id": user_id,
            "p256dh_key": subscription.keys.p256dh,
            "auth_key": subscription.keys.auth,
            "expiration_time": subscription.expiration_time,
            "subscribed_at": now,
            "last_active_at": now,
        }
        if device_info is not None:
            values.update(
                user_agent=device_info.user_agent,
                device_type=device_info.device_type,
                browser_name=device_info.browser_name,
            )

        try:
            sub = self.store.upsert_by_endpoint(subscription.endpoint, values)
            total_active = self.store.count_by_user(user_id)
        except StoreError as e:
            logger.error(f"Subscribe error: {e}")
            raise OperationFailedError("Failed to subscribe device") from e

        logger.info(f"User {user_id} subscribed device. Total active devices: {total_active}")
        return sub

    def unsubscribe(self, user_id: str, endpoint: str) -> Optional[PushSubscription]:
        try:
            sub = self.store.delete_by_user_and_endpoint(user_id, endpoint)
        except StoreError as e:
            logger.error(f"Unsubscribe error: {e}")
            raise OperationFailedError("Failed to unsubscribe device") from e

        if sub:
            logger.info(f"Deleted subscription for user {sub.user_id}, endpoint: {sub.endpoint}")
        return sub

    def unsubscribe_all_devices(self, user_id: str) -> int:
        try:
            count = self.store.delete_all_by_user(user_id)
        except StoreError as e:
            logger.error(f"Unsubscribe all devices error: {e}")
            raise OperationFailedError("Failed to unsubscribe all devices") from e

        logger.info(f"Deleted {count} subscriptions for user {user_id}")
        return count

    def get_user_subscriptions(self, user_id: str) -> UserSubscriptionSummary:
        subs = self.store.find_by_user(user_id)
        return UserSubscriptionSummary(
            user_id=user_id,
            total_subscriptions=len(subs),
            devices=[
                DeviceSummary(
                    endpoint=sub.endpoint,
                    device_info=sub.device_info(),
                    subscribed_at=sub.subscribed_at,
                    last_active_at=sub.last_active_at,
                )
                for sub in subs
            ],
        )

    # --- DELIVERY ---

    async def send_to_user(self, user_id: str, payload: Payload) -> SendResult:
        subs = self.store.find_by_user(user_id)
        if not subs:
            raise NotFoundError("User has no subscriptions")

        logger.info(f"Sending notification to {len(subs)} devices for user {user_id}")
        sent = await self._fan_out(subs, self._serialize(payload), self._semaphore())
        return SendResult(sent=sent, failed=len(subs) - sent)

    async def send_to_all(self, payload: Payload) -> BroadcastResult:
        subs = self.store.find_all()
        logger.info(f"📢 Broadcasting to {len(subs)} total devices")

        if not subs:
            return BroadcastResult(total=0, successful=0, failed=0, details=[])

        groups: Dict[str, List[PushSubscription]] = defaultdict(list)
        for sub in subs:
            groups[sub.user_id].append(sub)

        data = self._serialize(payload)
        semaphore = self._semaphore()
        counts = await asyncio.gather(
            *(self._fan_out(user_subs, data, semaphore) for user_subs in groups.values())
        )

        details = []
        for (user_id, user_subs), sent in zip(groups.items(), counts):
            details.append(BroadcastDetail(
                user_id=user_id,
                devices_notified=sent,
                devices_failed=len(user_subs) - sent,
            ))

        successful = sum(d.devices_notified for d in details)
        return BroadcastResult(
            total=len(subs),
            successful=successful,
            failed=len(subs) - successful,
            details=details,
        )

    def _semaphore(self) -> asyncio.Semaphore:
        if self.sender is None:
            raise PushConfigError("Push sender is not configured")
        return asyncio.Semaphore(self.max_concurrency)

    @staticmethod
    def _serialize(payload: Payload) -> str:
        if isinstance(payload, BaseModel):
            return payload.model_dump_json(by_alias=True, exclude_none=True)
        return json.dumps(payload)

    async def _fan_out(self, subs: List[PushSubscription], data: str, semaphore: asyncio.Semaphore) -> int:
        """Attempt every subscription once and return how many were delivered."""
        results = await asyncio.gather(
            *(self._deliver(sub, data, semaphore) for sub in subs),
            return_exceptions=True,
        )

        sent = 0
        for sub, result in zip(subs, results):
            if isinstance(result, Exception):
                logger.error(f"Unexpected error sending to device {sub.endpoint}: {result}")
            elif result:
                sent += 1
        return sent

    async def _deliver(self, sub: PushSubscription, data: str, semaphore: asyncio.Semaphore) -> bool:
        endpoint = sub.endpoint
        try:
            async with semaphore:
                await self.sender.send(sub.subscription_info(), data)
        except DeliveryFailure as failure:
            logger.error(f"Failed to send to device {endpoint} (status {failure.push_status}): {failure}")
            if failure.push_status in GONE_STATUS_CODES:
                self._prune(endpoint, failure.push_status)
            return False

        try:
            self.store.mark_active(sub)
        except StoreError as e:
            # Delivered all the same; only the timestamp is stale
            logger.warning(f"Could not update last activity for {endpoint}: {e}")
        return True

    def _prune(self, endpoint: str, push_status: int):
        try:
            self.store.delete_by_endpoint(endpoint)
        except StoreError as e:
            logger.error(f"Could not delete invalid subscription {endpoint}: {e}")
            return
        logger.info(f"🗑️ Deleted invalid subscription ({push_status}): {endpoint}")
