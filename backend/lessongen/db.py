from __future__ import annotations
from fastapi import Request
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings


DATABASE_URL = settings.database_url or "sqlite:///./lessons.db"


def make_engine(url: str) -> Engine:
	connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
	kwargs = {}
	# In-memory SQLite lives inside a single connection; share it across threads
	if url.startswith("sqlite") and (":memory:" in url or url == "sqlite://"):
		kwargs["poolclass"] = StaticPool
	return create_engine(url, connect_args=connect_args, future=True, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker:
	return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind, future=True)


engine = make_engine(DATABASE_URL)
SessionLocal = make_session_factory(engine)
Base = declarative_base()


def get_db(request: Request):
	factory = getattr(request.app.state, "session_factory", None) or SessionLocal
	db = factory()
	try:
		yield db
	finally:
		db.close()


# Best-effort lightweight migrations for development (SQLite-friendly)
def ensure_schema(bind: Engine | None = None) -> None:
	bind = bind or engine
	try:
		inspector = inspect(bind)
		tables = set(inspector.get_table_names())
	except Exception:
		return
	if "lessons" in tables:
		cols = {c["name"] for c in inspector.get_columns("lessons")}
		with bind.begin() as conn:
			if "lesson_json" not in cols:
				conn.exec_driver_sql("ALTER TABLE lessons ADD COLUMN lesson_json TEXT")
			if "error_message" not in cols:
				conn.exec_driver_sql("ALTER TABLE lessons ADD COLUMN error_message TEXT")
			if "updated_at" not in cols:
				conn.exec_driver_sql("ALTER TABLE lessons ADD COLUMN updated_at DATETIME")
