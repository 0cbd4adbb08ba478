"""Permissive recursive-descent parser for JSON documents cut off mid-stream.

Every node records whether its closing token has been seen. At end of input
open containers are closed instead of raising: an unterminated string keeps
the characters read so far, and arrays/objects keep the entries that were
fully parsed. Numbers and literals are only emitted once a following
character proves them finished, since "7" may still become "72".
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import NoReturn

from reqcheck_core.exceptions import MalformedJSONError

Scalar = int | float | bool | None
PathKey = str | int

_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
# Any prefix a valid number could still grow from
_NUMBER_PREFIX_RE = re.compile(r"-?(?:0|[1-9]\d*)?(?:\.\d*)?(?:[eE][+-]?\d*)?")
_LITERALS: dict[str, Scalar] = {"true": True, "false": False, "null": None}
_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
_WHITESPACE = " \t\n\r"


@dataclass
class JsonNode:
    """Base node; ``complete`` is False while the closing token is missing."""

    complete: bool


@dataclass
class ObjectNode(JsonNode):
    entries: dict[str, JsonNode] = field(default_factory=dict)


@dataclass
class ArrayNode(JsonNode):
    items: list[JsonNode] = field(default_factory=list)


@dataclass
class StringNode(JsonNode):
    value: str = ""


@dataclass
class ScalarNode(JsonNode):
    value: Scalar = None


def parse_partial(text: str) -> ObjectNode | None:
    """Parse the first JSON object in text, tolerating truncation.

    Leading preamble before the first ``{`` and anything after the root
    object are ignored. Returns None when no ``{`` has arrived yet or the
    input is malformed in a way more data cannot fix.
    """
    start = text.find("{")
    if start < 0:
        return None
    parser = _Parser(text, start)
    try:
        node = parser.parse_value()
    except (MalformedJSONError, RecursionError):
        return None
    if not isinstance(node, ObjectNode):
        return None
    return node


def to_python(node: JsonNode) -> object:
    """Convert a node tree into plain dicts, lists and scalars."""
    if isinstance(node, ObjectNode):
        return {key: to_python(child) for key, child in node.entries.items()}
    if isinstance(node, ArrayNode):
        return [to_python(child) for child in node.items]
    if isinstance(node, StringNode | ScalarNode):
        return node.value
    msg = f"Unknown node type: {type(node).__name__}"
    raise TypeError(msg)


def from_python(value: object) -> JsonNode:
    """Build a fully complete node tree from decoded JSON."""
    if isinstance(value, dict):
        return ObjectNode(
            complete=True,
            entries={str(key): from_python(child) for key, child in value.items()},
        )
    if isinstance(value, list):
        return ArrayNode(complete=True, items=[from_python(child) for child in value])
    if isinstance(value, str):
        return StringNode(complete=True, value=value)
    if value is None or isinstance(value, bool | int | float):
        return ScalarNode(complete=True, value=value)
    msg = f"Value of type {type(value).__name__} is not JSON"
    raise TypeError(msg)


def refine(previous: JsonNode | None, current: JsonNode) -> JsonNode:
    """Merge a newer parse into an older one without losing data.

    Object keys and array items present before are kept, strings never get
    shorter, and a complete node is never replaced by an incomplete one of
    a different shape.
    """
    if previous is None:
        return current

    if isinstance(previous, ObjectNode) and isinstance(current, ObjectNode):
        entries: dict[str, JsonNode] = {}
        for key, old_child in previous.entries.items():
            new_child = current.entries.get(key)
            entries[key] = old_child if new_child is None else refine(old_child, new_child)
        for key, new_child in current.entries.items():
            if key not in entries:
                entries[key] = new_child
        return ObjectNode(complete=current.complete or previous.complete, entries=entries)

    if isinstance(previous, ArrayNode) and isinstance(current, ArrayNode):
        items = [
            refine(previous.items[i], new_child) if i < len(previous.items) else new_child
            for i, new_child in enumerate(current.items)
        ]
        items.extend(previous.items[len(current.items) :])
        return ArrayNode(complete=current.complete or previous.complete, items=items)

    if isinstance(previous, StringNode) and isinstance(current, StringNode):
        if current.complete:
            return current
        if previous.complete or len(previous.value) > len(current.value):
            return previous
        return current

    if previous.complete and not current.complete:
        return previous
    return current


def node_at(root: JsonNode | None, path: tuple[PathKey, ...]) -> JsonNode | None:
    """Walk a path of object keys and array indexes; None when absent."""
    node = root
    for key in path:
        if isinstance(node, ObjectNode) and isinstance(key, str):
            node = node.entries.get(key)
        elif isinstance(node, ArrayNode) and isinstance(key, int):
            node = node.items[key] if -len(node.items) <= key < len(node.items) else None
        else:
            return None
        if node is None:
            return None
    return node


class _Parser:
    """Single-use cursor over the text being parsed."""

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos
        self.end = len(text)

    def parse_value(self) -> JsonNode | None:
        """Parse one value; None when input ends before it is known."""
        self._skip_ws()
        if self.pos >= self.end:
            return None
        char = self.text[self.pos]
        if char == "{":
            return self._parse_object()
        if char == "[":
            return self._parse_array()
        if char == '"':
            return self._parse_string()
        if char == "-" or char.isdigit():
            return self._parse_number()
        return self._parse_literal()

    def _parse_object(self) -> ObjectNode:
        node = ObjectNode(complete=False)
        self.pos += 1
        self._skip_ws()
        if self._at_end():
            return node
        if self.text[self.pos] == "}":
            self.pos += 1
            node.complete = True
            return node

        while True:
            self._skip_ws()
            if self._at_end():
                return node
            if self.text[self.pos] != '"':
                # tolerate a trailing comma before the closing brace
                if self.text[self.pos] == "}" and node.entries:
                    self.pos += 1
                    node.complete = True
                    return node
                self._fail("object key")
            key = self._parse_string()
            if not key.complete:
                return node

            self._skip_ws()
            if self._at_end():
                return node
            if self.text[self.pos] != ":":
                self._fail("':'")
            self.pos += 1

            value = self.parse_value()
            if value is None:
                return node
            node.entries[key.value] = value
            if not value.complete:
                return node

            self._skip_ws()
            if self._at_end():
                return node
            char = self.text[self.pos]
            self.pos += 1
            if char == "}":
                node.complete = True
                return node
            if char != ",":
                self.pos -= 1
                self._fail("',' or '}'")

    def _parse_array(self) -> ArrayNode:
        node = ArrayNode(complete=False)
        self.pos += 1
        self._skip_ws()
        if self._at_end():
            return node
        if self.text[self.pos] == "]":
            self.pos += 1
            node.complete = True
            return node

        while True:
            self._skip_ws()
            if self._at_end():
                return node
            if self.text[self.pos] == "]" and node.items:
                self.pos += 1
                node.complete = True
                return node
            value = self.parse_value()
            if value is None:
                return node
            node.items.append(value)
            if not value.complete:
                return node

            self._skip_ws()
            if self._at_end():
                return node
            char = self.text[self.pos]
            self.pos += 1
            if char == "]":
                node.complete = True
                return node
            if char != ",":
                self.pos -= 1
                self._fail("',' or ']'")

    def _parse_string(self) -> StringNode:
        self.pos += 1
        chunks: list[str] = []
        text = self.text
        while self.pos < self.end:
            char = text[self.pos]
            if char == '"':
                self.pos += 1
                return StringNode(complete=True, value="".join(chunks))
            if char != "\\":
                run_end = self.pos + 1
                while run_end < self.end and text[run_end] not in '"\\':
                    run_end += 1
                chunks.append(text[self.pos : run_end])
                self.pos = run_end
                continue

            decoded = self._parse_escape()
            if decoded is None:
                # escape sequence cut off by end of input
                break
            chunks.append(decoded)
        self.pos = self.end
        return StringNode(complete=False, value="".join(chunks))

    def _parse_escape(self) -> str | None:
        """Decode the escape at pos; None when input ends inside it."""
        if self.pos + 1 >= self.end:
            return None
        code = self.text[self.pos + 1]
        if code in _ESCAPES:
            self.pos += 2
            return _ESCAPES[code]
        if code != "u":
            self._fail("escape sequence")

        high = self._read_hex(self.pos + 2)
        if high is None:
            return None
        if 0xD800 <= high <= 0xDBFF:
            pair_start = self.pos + 6
            tail = self.text[pair_start : pair_start + 2]
            if len(tail) < 2 and "\\u".startswith(tail):
                return None
            if tail == "\\u":
                low = self._read_hex(pair_start + 2)
                if low is None:
                    return None
                if 0xDC00 <= low <= 0xDFFF:
                    self.pos = pair_start + 6
                    return chr(0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00))
        self.pos += 6
        return chr(high)

    def _read_hex(self, start: int) -> int | None:
        digits = self.text[start : start + 4]
        if not all(c in "0123456789abcdefABCDEF" for c in digits):
            self.pos = start
            self._fail("hex digits")
        if len(digits) < 4:
            return None
        return int(digits, 16)

    def _parse_number(self) -> ScalarNode | None:
        # a number is only known to be finished once something follows it
        prefix = _NUMBER_PREFIX_RE.match(self.text, self.pos)
        if prefix is not None and prefix.end() == self.end:
            return None
        match = _NUMBER_RE.match(self.text, self.pos)
        if match is None:
            self._fail("number")
        token = match.group()
        self.pos = match.end()
        if any(c in token for c in ".eE"):
            return ScalarNode(complete=True, value=float(token))
        return ScalarNode(complete=True, value=int(token))

    def _parse_literal(self) -> ScalarNode | None:
        rest = self.text[self.pos : self.pos + 5]
        for word, value in _LITERALS.items():
            if rest.startswith(word):
                self.pos += len(word)
                return ScalarNode(complete=True, value=value)
            if self.pos + len(rest) == self.end and word.startswith(rest):
                return None
        self._fail("value")

    def _skip_ws(self) -> None:
        while self.pos < self.end and self.text[self.pos] in _WHITESPACE:
            self.pos += 1

    def _at_end(self) -> bool:
        return self.pos >= self.end

    def _fail(self, expected: str) -> NoReturn:
        found = self.text[self.pos : self.pos + 10]
        msg = f"Expected {expected} at offset {self.pos}, found {found!r}"
        raise MalformedJSONError(msg)
