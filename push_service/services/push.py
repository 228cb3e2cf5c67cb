import asyncio
import logging
from typing import Any, Dict
from pywebpush import webpush, WebPushException
from push_service.core.config import Settings, settings as default_settings
from push_service.core.exceptions import DeliveryFailure, PushConfigError

logger = logging.getLogger(__name__)


class PushSender:
    """Delivers one serialized payload to one subscription.

    Returns on success, raises DeliveryFailure (with the push service's
    status code when there is one) otherwise.
    """

    async def send(self, subscription_info: Dict[str, Any], payload: str) -> None:
        raise NotImplementedError


class WebPushSender(PushSender):
    """Web Push (RFC 8030) through pywebpush, signed with the VAPID key pair."""

    def __init__(self, config: Settings = default_settings):
        if not (config.VAPID_PRIVATE_KEY and config.VAPID_PUBLIC_KEY and config.VAPID_CLAIMS_EMAIL):
            raise PushConfigError("Missing required VAPID configuration")

        self.private_key = config.VAPID_PRIVATE_KEY
        self.claims_subject = config.vapid_subject
        self.ttl = config.PUSH_TTL
        self.timeout = config.PUSH_TIMEOUT_SECONDS

    def _send_blocking(self, subscription_info: Dict[str, Any], payload: str):
        return webpush(
            subscription_info=subscription_info,
            data=payload,
            vapid_private_key=self.private_key,
            # Fresh dict per call, pywebpush writes `aud` and `exp` into it
            vapid_claims={"sub": self.claims_subject},
            ttl=self.ttl,
            timeout=self.timeout,
        )

    async def send(self, subscription_info: Dict[str, Any], payload: str) -> None:
        endpoint = subscription_info["endpoint"]
        # webpush() blocks on the HTTP request; keep it off the event loop
        try:
            await asyncio.to_thread(self._send_blocking, subscription_info, payload)
        except WebPushException as ex:
            status = getattr(ex.response, "status_code", None)
            raise DeliveryFailure(endpoint, status, str(ex)) from ex
        except Exception as ex:
            # Connection errors, malformed keys: no status code from the push service
            raise DeliveryFailure(endpoint, None, str(ex)) from ex

        logger.debug(f"Push delivered to {endpoint[:60]}")
