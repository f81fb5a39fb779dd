"""
Maintenance commands for the lesson store.

Commands:
- lessongen migrate   - Backfill lesson_json from stored content
- lessongen sweep     - Fail lessons stuck in "generating"
- lessongen serve     - Run the API with uvicorn
"""
from __future__ import annotations

from typing import Optional

import typer
import uvicorn
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .cleanup import fail_stale_generations
from .db import Base, SessionLocal, ensure_schema
from .extractor import try_extract
from .models import Lesson
from .settings import settings

app = typer.Typer(
	name="lessongen",
	help="Lesson generator maintenance commands",
	no_args_is_help=True,
)


def _prepare(session_factory: sessionmaker) -> None:
	bind = session_factory.kw["bind"]
	Base.metadata.create_all(bind=bind)
	ensure_schema(bind)


def backfill_lesson_json(session_factory: sessionmaker, limit: int = 1000) -> dict:
	"""Normalize stored content into lesson_json for rows that lack it."""
	stats = {"updated": 0, "skipped": 0, "unparseable": 0, "failed": 0}
	db = session_factory()
	try:
		rows = db.query(Lesson).order_by(Lesson.created_at).limit(limit).all()
		for row in rows:
			if row.lesson_json:
				stats["skipped"] += 1
				continue
			content = try_extract(row.content or "")
			if content is None:
				typer.echo(f"No JSON extracted for {row.id}")
				stats["unparseable"] += 1
				continue
			row_id = row.id
			try:
				row.lesson_json = content.to_json()
				db.add(row)
				db.commit()
			except SQLAlchemyError as err:
				db.rollback()
				typer.echo(f"Update failed for {row_id}: {err}")
				stats["failed"] += 1
				continue
			typer.echo(f"Updated {row_id}")
			stats["updated"] += 1
	finally:
		db.close()
	return stats


@app.command()
def migrate(limit: int = typer.Option(1000, "--limit", "-n", help="Maximum rows to inspect")):
	"""Backfill lesson_json for records whose content holds extractable lesson data."""
	_prepare(SessionLocal)
	stats = backfill_lesson_json(SessionLocal, limit=limit)
	typer.echo(
		f"Migration finished: {stats['updated']} updated, {stats['skipped']} skipped, "
		f"{stats['unparseable']} without JSON, {stats['failed']} failed"
	)


@app.command()
def sweep(max_age: Optional[int] = typer.Option(None, "--max-age", help="Seconds before a generating lesson is stale")):
	"""Mark lessons stuck in "generating" as failed."""
	_prepare(SessionLocal)
	db = SessionLocal()
	try:
		failed = fail_stale_generations(db, max_age if max_age is not None else settings.stale_generation_seconds)
	finally:
		db.close()
	typer.echo(f"Marked {failed} stale lesson(s) as failed")


@app.command()
def serve(
	host: str = typer.Option("127.0.0.1", "--host"),
	port: int = typer.Option(8000, "--port"),
	reload: bool = typer.Option(False, "--reload"),
):
	"""Run the HTTP API."""
	uvicorn.run("lessongen.main:app", host=host, port=port, reload=reload)


def run() -> None:
	app()


if __name__ == "__main__":
	run()
