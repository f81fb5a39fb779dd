from __future__ import annotations
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import update
from sqlalchemy.orm import Session

from .models import Lesson, STATUS_FAILED, STATUS_GENERATING


STALE_GENERATION_MESSAGE = "Generation did not complete in time"


def fail_stale_generations(db: Session, max_age_seconds: int, *, now: Optional[datetime] = None) -> int:
	# Rows still "generating" past the deadline belong to a task that crashed,
	# was lost on restart, or hung; nothing else will ever finish them.
	threshold = (now or datetime.utcnow()) - timedelta(seconds=max_age_seconds)
	res = db.execute(
		update(Lesson)
		.where(Lesson.status == STATUS_GENERATING, Lesson.created_at < threshold)
		.values(status=STATUS_FAILED, error_message=STALE_GENERATION_MESSAGE, updated_at=datetime.utcnow())
	)
	db.commit()
	return res.rowcount or 0
