"""Recover a validated LessonContent from arbitrary generator output.

Generator completions and stored records come in several shapes: bare JSON,
JSON wrapped in sentinels or a ```json fence, JSON surrounded by commentary,
or an ``export const lesson = {...}`` object literal from the component-text
era. Each strategy below is tried in order and the first candidate that passes
the acceptance rule wins. Parse errors inside a strategy never escape.
"""
from __future__ import annotations
import json
import logging
import re
from typing import Any, Callable, Dict, Iterator, Optional

from pydantic import ValidationError as SchemaError

from .literal import LiteralSyntaxError, parse_object_literal
from .schemas import LessonContent

logger = logging.getLogger(__name__)


SENTINEL_START = "---LESSON_JSON_START---"
SENTINEL_END = "---LESSON_JSON_END---"

_SENTINEL_RE = re.compile(
	re.escape(SENTINEL_START) + r"\s*([\s\S]*?)\s*" + re.escape(SENTINEL_END)
)
_FENCED_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_EXPORT_RE = re.compile(r"export\s+const\s+lesson\s*=\s*(?=\{)")


class ExtractionError(ValueError):
	pass


class NoStructuredContentFound(ExtractionError):
	def __init__(self, message: str = "No structured lesson content found") -> None:
		super().__init__(message)


def find_balanced_object(
	text: str,
	start: int = 0,
	quotes: str = '"',
	*,
	comments: bool = False,
) -> Optional[str]:
	"""Return the span from the first ``{`` at or after ``start`` to its matching ``}``.

	Characters inside string literals (delimited by any of ``quotes``) are
	skipped, so braces inside string values do not affect the depth count.
	With ``comments``, ``//`` line comments and ``/* */`` block comments
	outside strings are skipped as well.
	"""
	begin = text.find("{", start)
	if begin == -1:
		return None
	depth = 0
	in_string: Optional[str] = None
	escaped = False
	i = begin
	while i < len(text):
		ch = text[i]
		if in_string is not None:
			if escaped:
				escaped = False
			elif ch == "\\":
				escaped = True
			elif ch == in_string:
				in_string = None
		elif comments and text.startswith("//", i):
			end = text.find("\n", i)
			if end == -1:
				return None
			i = end
		elif comments and text.startswith("/*", i):
			end = text.find("*/", i + 2)
			if end == -1:
				return None
			i = end + 1
		elif ch in quotes:
			in_string = ch
		elif ch == "{":
			depth += 1
		elif ch == "}":
			depth -= 1
			if depth == 0:
				return text[begin : i + 1]
		i += 1
	return None


def is_acceptable(data: Any, *, strict_sections: bool = False) -> bool:
	if not isinstance(data, dict):
		return False
	title = data.get("title")
	if not isinstance(title, str) or not title.strip():
		return False
	sections = data.get("sections")
	if not isinstance(sections, list):
		return False
	if strict_sections and not sections:
		return False
	return True


def _loads(candidate: Optional[str]) -> Any:
	if candidate is None:
		return None
	try:
		return json.loads(candidate)
	except (json.JSONDecodeError, RecursionError):
		return None


def _direct(text: str) -> Any:
	return _loads(text.strip())


def _sentinel(text: str) -> Any:
	m = _SENTINEL_RE.search(text)
	return _loads(m.group(1)) if m else None


def _fenced(text: str) -> Any:
	m = _FENCED_RE.search(text)
	return _loads(m.group(1)) if m else None


def _balanced(text: str) -> Any:
	return _loads(find_balanced_object(text))


def _legacy_literal(text: str) -> Any:
	m = _EXPORT_RE.search(text)
	if not m:
		return None
	literal = find_balanced_object(text, m.end(), quotes="\"'`", comments=True)
	if literal is None:
		return None
	try:
		return parse_object_literal(literal)
	except LiteralSyntaxError as err:
		logger.debug("legacy lesson literal not convertible: %s", err)
		return None


STRATEGIES: Dict[str, Callable[[str], Any]] = {
	"direct": _direct,
	"sentinel": _sentinel,
	"fenced": _fenced,
	"balanced": _balanced,
	"legacy_literal": _legacy_literal,
}


def _candidates(text: str) -> Iterator[tuple[str, Any]]:
	for name, strategy in STRATEGIES.items():
		yield name, strategy(text)


def extract(text: Optional[str], *, strict_sections: bool = False) -> LessonContent:
	"""Return the first acceptable LessonContent found in ``text``.

	Acceptance: a JSON object whose ``title`` is a non-empty string and whose
	``sections`` is an array (non-empty too when ``strict_sections``). Raises
	NoStructuredContentFound when no strategy yields such an object.
	"""
	if not text or not text.strip():
		raise NoStructuredContentFound()
	for name, data in _candidates(text):
		if not is_acceptable(data, strict_sections=strict_sections):
			continue
		try:
			content = LessonContent.model_validate(data)
		except SchemaError as err:
			logger.debug("%s candidate failed schema validation: %s", name, err)
			continue
		logger.debug("lesson content extracted via %s strategy", name)
		return content
	raise NoStructuredContentFound()


def try_extract(text: Optional[str], *, strict_sections: bool = False) -> Optional[LessonContent]:
	try:
		return extract(text, strict_sections=strict_sections)
	except ExtractionError:
		return None
