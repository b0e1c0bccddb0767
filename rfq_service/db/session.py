from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rfq_service.core.config import settings

# The engine handles connection pooling for the configured database URL.
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        # Always release the connection, even if the request failed.
        db.close()
