from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from .db import Base


STATUS_GENERATING = "generating"
STATUS_GENERATED = "generated"
STATUS_FAILED = "failed"

LESSON_STATUSES = (STATUS_GENERATING, STATUS_GENERATED, STATUS_FAILED)


def _new_id() -> str:
	return uuid.uuid4().hex


class Lesson(Base):
	__tablename__ = "lessons"
	id = Column(String(32), primary_key=True, default=_new_id)
	title = Column(String(128), nullable=False)
	outline = Column(Text, nullable=False)
	# One of LESSON_STATUSES; generated and failed are terminal
	status = Column(String(16), default=STATUS_GENERATING, nullable=False, index=True)
	content = Column(Text, nullable=True)  # raw text as produced by the active response format
	lesson_json = Column(Text, nullable=True)  # normalized LessonContent JSON
	error_message = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=True)
