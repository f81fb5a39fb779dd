"""Convert JavaScript-style object literals into strict JSON.

Older lesson records were stored as component source with the lesson data
assigned to a constant, e.g. ``export const lesson = { title: 'X', ... };``.
The literal is tokenized and re-emitted as JSON; nothing is ever evaluated.
"""
from __future__ import annotations
import json
import re
from typing import Any, List, NamedTuple


class LiteralSyntaxError(ValueError):
	pass


class Token(NamedTuple):
	kind: str  # "string", "number", "ident" or "punct"
	value: Any
	pos: int


_PUNCT = set("{}[]:,")
_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_NUMBER_RE = re.compile(
	r"[+-]?(?:0[xX][0-9a-fA-F]+|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
)
_SIMPLE_ESCAPES = {
	"n": "\n",
	"t": "\t",
	"r": "\r",
	"b": "\b",
	"f": "\f",
	"v": "\v",
	"0": "\0",
}
_VALUE_IDENTS = {"true": "true", "false": "false", "null": "null", "undefined": "null"}


def _read_string(source: str, start: int) -> tuple[str, int]:
	quote = source[start]
	out: List[str] = []
	i = start + 1
	n = len(source)
	while i < n:
		ch = source[i]
		if ch == quote:
			return "".join(out), i + 1
		if ch == "\\":
			if i + 1 >= n:
				break
			esc = source[i + 1]
			if esc in _SIMPLE_ESCAPES:
				out.append(_SIMPLE_ESCAPES[esc])
				i += 2
			elif esc == "u":
				digits = source[i + 2 : i + 6]
				if len(digits) != 4 or not re.fullmatch(r"[0-9a-fA-F]{4}", digits):
					raise LiteralSyntaxError(f"bad unicode escape at offset {i}")
				out.append(chr(int(digits, 16)))
				i += 6
			elif esc == "x":
				digits = source[i + 2 : i + 4]
				if len(digits) != 2 or not re.fullmatch(r"[0-9a-fA-F]{2}", digits):
					raise LiteralSyntaxError(f"bad hex escape at offset {i}")
				out.append(chr(int(digits, 16)))
				i += 4
			elif esc == "\n":
				# line continuation
				i += 2
			else:
				out.append(esc)
				i += 2
			continue
		if quote == "`" and ch == "$" and source.startswith("${", i):
			raise LiteralSyntaxError(f"template interpolation at offset {i}")
		if ch == "\n" and quote != "`":
			raise LiteralSyntaxError(f"unterminated string at offset {start}")
		out.append(ch)
		i += 1
	raise LiteralSyntaxError(f"unterminated string at offset {start}")


def tokenize(source: str) -> List[Token]:
	tokens: List[Token] = []
	i = 0
	n = len(source)
	while i < n:
		ch = source[i]
		if ch.isspace():
			i += 1
			continue
		if source.startswith("//", i):
			end = source.find("\n", i)
			i = n if end == -1 else end + 1
			continue
		if source.startswith("/*", i):
			end = source.find("*/", i + 2)
			if end == -1:
				raise LiteralSyntaxError(f"unterminated comment at offset {i}")
			i = end + 2
			continue
		if ch in _PUNCT:
			tokens.append(Token("punct", ch, i))
			i += 1
			continue
		if ch in "'\"`":
			value, i_next = _read_string(source, i)
			tokens.append(Token("string", value, i))
			i = i_next
			continue
		m = _NUMBER_RE.match(source, i)
		if m and (ch.isdigit() or ch in "+-."):
			tokens.append(Token("number", m.group(0), i))
			i = m.end()
			continue
		m = _IDENT_RE.match(source, i)
		if m:
			tokens.append(Token("ident", m.group(0), i))
			i = m.end()
			continue
		raise LiteralSyntaxError(f"unexpected character {ch!r} at offset {i}")
	return tokens


def _number_to_json(text: str) -> str:
	body = text.lstrip("+")
	sign = ""
	if body.startswith("-"):
		sign, body = "-", body[1:]
	if body[:2].lower() == "0x":
		return sign + str(int(body, 16))
	if re.fullmatch(r"\d+", body):
		return sign + str(int(body))
	return json.dumps(float(sign + body))


def object_literal_to_json(source: str) -> str:
	"""Re-emit an object literal as strict JSON text.

	Bare keys are quoted, any of the three JS quote styles become JSON strings,
	comments and trailing commas are dropped and ``undefined`` becomes ``null``.
	Raises LiteralSyntaxError for anything that is not plain data.
	"""
	tokens = tokenize(source)
	parts: List[str] = []
	for idx, tok in enumerate(tokens):
		nxt = tokens[idx + 1] if idx + 1 < len(tokens) else None
		is_key = nxt is not None and nxt.kind == "punct" and nxt.value == ":"
		if tok.kind == "punct":
			if tok.value == "," and (nxt is None or (nxt.kind == "punct" and nxt.value in "}]")):
				continue
			parts.append(tok.value)
		elif tok.kind == "string":
			parts.append(json.dumps(tok.value, ensure_ascii=False))
		elif tok.kind == "number":
			parts.append(json.dumps(tok.value) if is_key else _number_to_json(tok.value))
		elif is_key:
			parts.append(json.dumps(tok.value))
		elif tok.value in _VALUE_IDENTS:
			parts.append(_VALUE_IDENTS[tok.value])
		else:
			raise LiteralSyntaxError(f"unsupported identifier {tok.value!r} at offset {tok.pos}")
	return "".join(parts)


def parse_object_literal(source: str) -> Any:
	try:
		return json.loads(object_literal_to_json(source))
	except (json.JSONDecodeError, RecursionError) as err:
		raise LiteralSyntaxError(str(err)) from err
