"""Incremental assembly of a streamed JSON report."""

from __future__ import annotations

import codecs

import structlog

from reqcheck_core.exceptions import StreamClosedError
from reqcheck_streaming.document import PartialDocument
from reqcheck_streaming.partial_json import ObjectNode, parse_partial, refine

logger = structlog.get_logger()


class IncrementalAssembler:
    """Accumulate fragments and keep the best partial document seen so far.

    The buffer is owned by one in-flight analysis. Each fragment triggers a
    permissive re-parse of the whole buffer; the result is merged into the
    previous document so no field ever regresses. Parse misses are expected
    while the model is mid-token and never raise.
    """

    def __init__(self) -> None:
        """Start with an empty, open chunk sequence."""
        self._fragments: list[str] = []
        self._text = ""
        self._document: PartialDocument | None = None
        self._closed = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.parse_misses = 0

    @property
    def text(self) -> str:
        """Concatenation of every fragment received."""
        return self._text

    @property
    def fragments(self) -> tuple[str, ...]:
        """Fragments in arrival order."""
        return tuple(self._fragments)

    @property
    def document(self) -> PartialDocument | None:
        """Current best-effort document, or None before the first ``{``."""
        return self._document

    @property
    def closed(self) -> bool:
        """Whether the sequence has been frozen by EOF or an error."""
        return self._closed

    def feed(self, fragment: str | bytes) -> PartialDocument | None:
        """Append a fragment and refresh the partial document."""
        if self._closed:
            msg = "Cannot append to a closed chunk sequence"
            raise StreamClosedError(msg)

        if isinstance(fragment, bytes):
            fragment = self._decoder.decode(fragment)
        self._fragments.append(fragment)
        if not fragment:
            return self._document
        self._text += fragment

        parsed = parse_partial(self._text)
        if parsed is None:
            self.parse_misses += 1
            logger.debug("partial_parse_miss", buffer_length=len(self._text))
            return self._document

        previous = self._document.root if self._document is not None else None
        merged = refine(previous, parsed)
        assert isinstance(merged, ObjectNode)
        self._document = PartialDocument(root=merged)
        return self._document

    def close(self) -> None:
        """Freeze the sequence; later fragments are rejected."""
        if self._closed:
            return
        tail = self._decoder.decode(b"", final=True)
        if tail:
            self._fragments.append(tail)
            self._text += tail
        self._closed = True
