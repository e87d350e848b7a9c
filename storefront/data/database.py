# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.utils.settings import DATABASE_URL, DATABASE_TIMEOUT_SECONDS


def build_engine(url: str = DATABASE_URL):
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": DATABASE_TIMEOUT_SECONDS}
    else:
        connect_args = {"connect_timeout": DATABASE_TIMEOUT_SECONDS}

    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    # models have to be imported before create_all so they register in Base.metadata
    import storefront.data.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
