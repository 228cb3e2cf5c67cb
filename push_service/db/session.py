from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from push_service.core.config import settings

DATABASE_URI = settings.SQLALCHEMY_DATABASE_URI

# SQLite: the session is used from the event loop thread, not the one that opened it.
# In-memory SQLite needs a single shared connection or each request sees an empty DB.
_is_sqlite = DATABASE_URI.startswith("sqlite")
_engine_kwargs = {}
if _is_sqlite:
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
    if ":memory:" in DATABASE_URI:
        _engine_kwargs["poolclass"] = StaticPool

engine = create_engine(
    DATABASE_URI,
    pool_pre_ping=True, # Checks the connection is alive before using it
    echo=False,
    **_engine_kwargs,
)

# Records outlive the commit that wrote them while a fan-out is still running
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
