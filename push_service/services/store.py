import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value
from push_service.core.exceptions import StoreError
from push_service.models.subscription import PushSubscription, utcnow

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """Persistence for push subscriptions, keyed by endpoint.

    Every write commits on its own; there is no cross-record transaction.
    SQLAlchemy errors roll the session back and surface as StoreError.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        logger.error(f"Store error while {action}: {exc}")
        return StoreError(f"Store error while {action}")

    def upsert_by_endpoint(self, endpoint: str, values: Dict[str, Any]) -> PushSubscription:
        """Insert or overwrite the record owning `endpoint`."""
        try:
            sub = self.db.query(PushSubscription).filter(
                PushSubscription.endpoint == endpoint
            ).first()

            if sub is None:
                sub = PushSubscription(endpoint=endpoint)
                self.db.add(sub)

            for field, value in values.items():
                setattr(sub, field, value)

            self.db.commit()
            self.db.refresh(sub)
            return sub
        except SQLAlchemyError as e:
            raise self._fail("upserting subscription", e)

    def delete_by_user_and_endpoint(self, user_id: str, endpoint: str) -> Optional[PushSubscription]:
        try:
            sub = self.db.query(PushSubscription).filter(
                PushSubscription.user_id == user_id,
                PushSubscription.endpoint == endpoint,
            ).first()
            if sub is None:
                return None

            self.db.delete(sub)
            self.db.commit()
            return sub
        except SQLAlchemyError as e:
            raise self._fail("deleting subscription", e)

    def delete_all_by_user(self, user_id: str) -> int:
        try:
            count = self.db.query(PushSubscription).filter(
                PushSubscription.user_id == user_id
            ).delete(synchronize_session=False)
            self.db.commit()
            return count
        except SQLAlchemyError as e:
            raise self._fail("deleting user subscriptions", e)

    def delete_by_endpoint(self, endpoint: str) -> None:
        """No-op when the endpoint is already gone."""
        try:
            self.db.query(PushSubscription).filter(
                PushSubscription.endpoint == endpoint
            ).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("pruning subscription", e)

    def find_by_user(self, user_id: str) -> List[PushSubscription]:
        try:
            return self.db.query(PushSubscription).filter(
                PushSubscription.user_id == user_id
            ).order_by(PushSubscription.id).all()
        except SQLAlchemyError as e:
            raise self._fail("loading user subscriptions", e)

    def find_all(self) -> List[PushSubscription]:
        try:
            return self.db.query(PushSubscription).order_by(PushSubscription.id).all()
        except SQLAlchemyError as e:
            raise self._fail("loading subscriptions", e)

    def count_by_user(self, user_id: str) -> int:
        try:
            return self.db.query(PushSubscription).filter(
                PushSubscription.user_id == user_id
            ).count()
        except SQLAlchemyError as e:
            raise self._fail("counting subscriptions", e)

    def mark_active(self, sub: PushSubscription) -> None:
        """Touch last_active_at. Matches by id, so a record deleted meanwhile is skipped."""
        now = utcnow()
        try:
            self.db.query(PushSubscription).filter(
                PushSubscription.id == sub.id
            ).update({PushSubscription.last_active_at: now}, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("marking subscription active", e)
        # Already persisted; must not leave the instance dirty for the next flush
        set_committed_value(sub, "last_active_at", now)
