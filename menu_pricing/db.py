from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .core.config import settings

# Base para los modelos del catálogo
Base = declarative_base()


def make_engine(url: str):
    is_sqlite = url.startswith("sqlite")
    engine = create_engine(
        url,
        connect_args={"check_same_thread": False, "timeout": 60} if is_sqlite else {},
        pool_pre_ping=True,
    )
    if is_sqlite:
        # PRAGMAs por conexión
        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_conn, _):
            cur = dbapi_conn.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA busy_timeout=60000;")
                cur.execute("PRAGMA foreign_keys=ON;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            finally:
                cur.close()

    return engine


# Permite override por variable de entorno (CATALOG_DATABASE_URL)
engine = make_engine(settings.catalog_database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
