from typing import Generator, Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from push_service.db.session import SessionLocal
from push_service.core.config import settings
from push_service.services.notification import NotificationService
from push_service.services.push import PushSender, WebPushSender
from push_service.services.store import SubscriptionStore

def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()

def get_store(db: Session = Depends(get_db)) -> SubscriptionStore:
    return SubscriptionStore(db)

def get_push_sender() -> PushSender:
    """Raises PushConfigError when the VAPID keys are not set."""
    return WebPushSender(settings)

def get_subscription_service(store: SubscriptionStore = Depends(get_store)) -> NotificationService:
    # Lifecycle operations never send, so they work without VAPID keys
    return NotificationService(store)

def get_notification_service(
    store: SubscriptionStore = Depends(get_store),
    sender: PushSender = Depends(get_push_sender),
) -> NotificationService:
    return NotificationService(store, sender, max_concurrency=settings.PUSH_MAX_CONCURRENCY)

def validate_user_id(
    user_id: str,
    x_userid: Optional[str] = Header(default=None),
) -> str:
    """
    The caller may only touch its own subscriptions: X-UserId must match the path.
    """
    if not x_userid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-UserId header is required",
        )
    if x_userid != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: X-UserId header does not match requested user",
        )
    return user_id
