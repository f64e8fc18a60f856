from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from .core.config import get_settings

settings = get_settings()
DATABASE_URL = settings.database_url

# SQLite connections are shared across FastAPI's threadpool workers
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
	DATABASE_URL,
	echo=(settings.environment == "local" and settings.log_level.upper() == "DEBUG"),
	connect_args=_connect_args,
	future=True,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db() -> Generator[Session, None, None]:
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()
