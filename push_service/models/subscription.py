from datetime import datetime, timezone
from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Index
from sqlalchemy.sql import func
from push_service.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    # Not unique: one user may subscribe from many browsers
    user_id = Column(String(255), nullable=False, index=True)

    # Data the browser hands over in PushSubscription.toJSON()
    endpoint = Column(String(768), nullable=False, unique=True, index=True)
    p256dh_key = Column(String(255), nullable=False)
    auth_key = Column(String(255), nullable=False)
    expiration_time = Column(BigInteger, nullable=True)

    # Descriptive only
    user_agent = Column(String(512), nullable=True)
    device_type = Column(String(64), nullable=True)
    browser_name = Column(String(64), nullable=True)

    subscribed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_active_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_push_subscriptions_user_endpoint", "user_id", "endpoint"),
    )

    def subscription_info(self) -> dict:
        """Shape pywebpush expects for `subscription_info`."""
        info = {
            "endpoint": self.endpoint,
            "keys": {
                "p256dh": self.p256dh_key,
                "auth": self.auth_key,
            },
        }
        if self.expiration_time is not None:
            info["expirationTime"] = self.expiration_time
        return info

    def device_info(self) -> dict | None:
        info = {
            "userAgent": self.user_agent,
            "deviceType": self.device_type,
            "browserName": self.browser_name,
        }
        if not any(info.values()):
            return None
        return {k: v for k, v in info.items() if v is not None}
