"""Tests for IncrementalAssembler and PartialDocument."""

from __future__ import annotations

import json
from typing import Any

import pytest

from reqcheck_core.exceptions import StreamClosedError
from reqcheck_streaming.assembler import IncrementalAssembler
from reqcheck_streaming.document import PartialDocument
from reqcheck_streaming.partial_json import ArrayNode, JsonNode, ObjectNode, StringNode
from tests.mocks.mock_factories import make_feasibility_report, split_json


def _assert_refines(old: JsonNode, new: JsonNode) -> None:
    """new keeps everything old had: keys, lengths, prefixes, completeness."""
    if old.complete:
        assert new.complete
    if isinstance(old, ObjectNode):
        assert isinstance(new, ObjectNode)
        for key, child in old.entries.items():
            assert key in new.entries
            _assert_refines(child, new.entries[key])
    elif isinstance(old, ArrayNode):
        assert isinstance(new, ArrayNode)
        assert len(new.items) >= len(old.items)
        for before, after in zip(old.items, new.items, strict=False):
            _assert_refines(before, after)
    elif isinstance(old, StringNode):
        assert isinstance(new, StringNode)
        assert new.value.startswith(old.value)


@pytest.mark.unit
class TestIncrementalAssembler:
    """Fragment-by-fragment document assembly."""

    def test_location_then_score(self) -> None:
        """A score is only shown once the digit run is closed."""
        assembler = IncrementalAssembler()
        fragments = [
            '{"locationResults":[{"location":"P',
            'hilippines","feasibilityScore":7',
            "2}]}",
        ]

        first = assembler.feed(fragments[0])
        assert first is not None
        assert first.get("locationResults", 0, "location") == "P"
        assert not first.is_complete("locationResults", 0, "location")

        second = assembler.feed(fragments[1])
        assert second is not None
        assert second.get("locationResults", 0, "location") == "Philippines"
        assert second.is_complete("locationResults", 0, "location")
        assert not second.has("locationResults", 0, "feasibilityScore")

        third = assembler.feed(fragments[2])
        assert third is not None
        assert third.get("locationResults", 0, "feasibilityScore") == 72
        assert third.is_complete()

    def test_every_fragment_refines_the_previous_document(self) -> None:
        report = make_feasibility_report()
        assembler = IncrementalAssembler()
        previous: PartialDocument | None = None
        for fragment in split_json(report, size=5):
            document = assembler.feed(fragment)
            if previous is not None:
                assert document is not None
                _assert_refines(previous.root, document.root)
            previous = document or previous
        assert previous is not None
        assert previous.value == report

    @pytest.mark.parametrize("size", [1, 3, 11, 64])
    def test_any_split_converges_to_the_full_report(self, size: int) -> None:
        report = make_feasibility_report()
        assembler = IncrementalAssembler()
        for fragment in split_json(report, size=size):
            assembler.feed(fragment)
        assert assembler.document is not None
        assert assembler.document.value == report
        assert assembler.text == json.dumps(report)

    def test_preamble_only_gives_no_document(self) -> None:
        assembler = IncrementalAssembler()
        assert assembler.feed("Here is my analysis") is None
        assert assembler.document is None
        assert assembler.feed(":\n") is None

    def test_unparseable_fragment_keeps_previous_document(self) -> None:
        assembler = IncrementalAssembler()
        good = assembler.feed('{"summary": "ok",')
        assert good is not None
        assert assembler.feed(' "flags" [') is good
        assert assembler.parse_misses == 1

    def test_empty_fragment_is_recorded(self) -> None:
        assembler = IncrementalAssembler()
        assembler.feed("")
        assert assembler.fragments == ("",)
        assert assembler.document is None

    def test_feed_after_close_raises(self) -> None:
        assembler = IncrementalAssembler()
        assembler.feed("{")
        assembler.close()
        assert assembler.closed
        with pytest.raises(StreamClosedError):
            assembler.feed("}")

    def test_close_is_idempotent(self) -> None:
        assembler = IncrementalAssembler()
        assembler.close()
        assembler.close()
        assert assembler.closed

    def test_bytes_split_inside_a_character(self) -> None:
        data = '{"location": "São Paulo"}'.encode()
        cut = data.index("ã".encode()) + 1
        assembler = IncrementalAssembler()
        assembler.feed(data[:cut])
        document = assembler.feed(data[cut:])
        assert document is not None
        assert document.get("location") == "São Paulo"


@pytest.mark.unit
class TestPartialDocument:
    """Read helpers over a node tree."""

    def test_from_value_is_complete(self) -> None:
        data: dict[str, Any] = {"a": {"b": [1, 2]}}
        document = PartialDocument.from_value(data)
        assert document.value == data
        assert document.is_complete("a", "b", 1)

    def test_get_default(self) -> None:
        document = PartialDocument.from_value({"a": 1})
        assert document.get("missing", default="x") == "x"
        assert document.has("a")
        assert not document.has("a", "b")
        assert not document.is_complete("missing")
