"""
Unit tests for stale-generation reconciliation and the lesson_json backfill.
"""
from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from lessongen.cleanup import STALE_GENERATION_MESSAGE, fail_stale_generations
from lessongen.cli import backfill_lesson_json
from lessongen.models import Lesson, STATUS_FAILED, STATUS_GENERATED, STATUS_GENERATING

from helpers import lesson_json


def _add(db, **fields):
	row = Lesson(title=fields.pop("title", "T"), outline=fields.pop("outline", "outline"), **fields)
	db.add(row)
	db.commit()
	return row.id


class TestFailStaleGenerations:
	def test_only_old_generating_rows(self, db):
		now = datetime(2024, 5, 1, 12, 0, 0)
		stale = _add(db, status=STATUS_GENERATING, created_at=now - timedelta(hours=2))
		fresh = _add(db, status=STATUS_GENERATING, created_at=now - timedelta(seconds=30))
		done = _add(db, status=STATUS_GENERATED, content="{}", created_at=now - timedelta(days=3))

		assert fail_stale_generations(db, 600, now=now) == 1
		db.expire_all()

		row = db.get(Lesson, stale)
		assert row.status == STATUS_FAILED
		assert row.error_message == STALE_GENERATION_MESSAGE
		assert db.get(Lesson, fresh).status == STATUS_GENERATING
		assert db.get(Lesson, done).status == STATUS_GENERATED

	def test_nothing_to_do(self, db):
		assert fail_stale_generations(db, 600) == 0


LEGACY = "export const lesson = { title: 'Old', sections: [{ heading: 'A', bodyMarkdown: 'b' }] };"


class TestBackfill:
	def test_backfills_extractable_rows(self, db, session_factory):
		fenced = _add(db, status=STATUS_GENERATED, content="```json\n" + lesson_json(title="Fenced") + "\n```")
		legacy = _add(db, status=STATUS_GENERATED, content=LEGACY)
		component = _add(db, status=STATUS_GENERATED, content="export default function L() { return null; }")
		already = _add(db, status=STATUS_GENERATED, content="x", lesson_json=lesson_json(title="Kept"))

		stats = backfill_lesson_json(session_factory)
		assert stats == {"updated": 2, "skipped": 1, "unparseable": 1, "failed": 0}

		db.expire_all()
		assert '"title":"Fenced"' in db.get(Lesson, fenced).lesson_json
		assert '"title":"Old"' in db.get(Lesson, legacy).lesson_json
		assert db.get(Lesson, component).lesson_json is None
		assert '"Kept"' in db.get(Lesson, already).lesson_json

	def test_commit_failure_skips_row_and_continues(self, db, engine):
		class FailFirstCommit(Session):
			failures = 1

			def commit(self):
				if FailFirstCommit.failures:
					FailFirstCommit.failures -= 1
					raise OperationalError("UPDATE lessons", {}, Exception("database is locked"))
				super().commit()

		now = datetime.utcnow()
		first = _add(db, status=STATUS_GENERATED, content=lesson_json(title="First"), created_at=now - timedelta(hours=1))
		second = _add(db, status=STATUS_GENERATED, content=lesson_json(title="Second"), created_at=now)

		flaky = sessionmaker(bind=engine, class_=FailFirstCommit, expire_on_commit=False)
		stats = backfill_lesson_json(flaky)
		assert stats == {"updated": 1, "skipped": 0, "unparseable": 0, "failed": 1}

		db.expire_all()
		assert db.get(Lesson, first).lesson_json is None
		assert '"title":"Second"' in db.get(Lesson, second).lesson_json
