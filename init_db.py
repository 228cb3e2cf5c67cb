# init_db.py
import logging

from push_service.db.session import engine
from push_service.db.base import Base

# The model must be imported so SQLAlchemy knows the table before create_all
from push_service.models.subscription import PushSubscription  # noqa: F401

logger = logging.getLogger("init_db")


def init_db():
    logger.info("Connecting to the database...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created.")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
