from __future__ import annotations
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from .cleanup import fail_stale_generations
from .db import Base, SessionLocal, ensure_schema
from .gemini_client import GeminiClient
from .generation import CompletionClient, LessonGenerator
from .settings import Settings, settings as default_settings
from .routers import health, generate, lessons

logger = logging.getLogger(__name__)


def _sweep(session_factory: sessionmaker, max_age_seconds: int) -> None:
	db = session_factory()
	try:
		failed = fail_stale_generations(db, max_age_seconds)
		if failed:
			logger.warning("Marked %d stale lesson generation(s) as failed", failed)
	except Exception:
		logger.exception("Stale generation sweep failed")
	finally:
		db.close()


async def _sweep_watcher(session_factory: sessionmaker, config: Settings):
	while True:
		await asyncio.sleep(config.sweep_interval_seconds)
		_sweep(session_factory, config.stale_generation_seconds)


def _build_client(config: Settings) -> Optional[GeminiClient]:
	if not config.gemini_api_key:
		logger.warning("GEMINI_API_KEY is not configured; lesson generation will fail")
		return None
	return GeminiClient(config)


def create_app(
	config: Optional[Settings] = None,
	*,
	client: Optional[CompletionClient] = None,
	session_factory: Optional[sessionmaker] = None,
) -> FastAPI:
	config = config or default_settings
	session_factory = session_factory or SessionLocal
	logging.basicConfig(
		level=config.log_level.upper(),
		format="%(asctime)s %(levelname)s %(name)s: %(message)s",
	)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		bind = session_factory.kw["bind"]
		Base.metadata.create_all(bind=bind)
		ensure_schema(bind)
		# Rows left "generating" by a previous process can never finish
		_sweep(session_factory, config.stale_generation_seconds)
		generator = LessonGenerator(
			client if client is not None else _build_client(config),
			session_factory,
			config,
		)
		app.state.generator = generator
		watcher = asyncio.create_task(_sweep_watcher(session_factory, config))
		yield
		watcher.cancel()
		await asyncio.gather(watcher, return_exceptions=True)
		await generator.aclose()

	app = FastAPI(title="Lesson Generator API", lifespan=lifespan)
	app.state.session_factory = session_factory
	app.state.settings = config
	app.include_router(health.router)
	app.include_router(generate.router)
	app.include_router(lessons.router)

	@app.get("/info")
	def root():
		return {
			"status": "ok",
			"generator_configured": bool(client is not None or config.gemini_api_key),
			"response_format": config.response_format,
			"generation_mode": config.generation_mode,
		}

	return app


app = create_app()
