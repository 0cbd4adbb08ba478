"""Read-only views over streamed and finalized report trees."""

from __future__ import annotations

from dataclasses import dataclass, field

from reqcheck_streaming.partial_json import (
    ObjectNode,
    PathKey,
    from_python,
    node_at,
    to_python,
)


@dataclass
class PartialDocument:
    """Best-effort interpretation of the stream so far.

    Fields may be missing, strings may still be growing and containers may
    still be open; ``is_complete`` tells which.
    """

    root: ObjectNode
    _value: dict[str, object] | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_value(cls, data: dict[str, object]) -> PartialDocument:
        """Wrap already-decoded JSON; every node is complete."""
        root = from_python(data)
        assert isinstance(root, ObjectNode)
        return cls(root=root)

    @property
    def value(self) -> dict[str, object]:
        """The tree as plain Python data."""
        if self._value is None:
            self._value = to_python(self.root)  # type: ignore[assignment]
        assert self._value is not None
        return self._value

    def get(self, *path: PathKey, default: object = None) -> object:
        """Return the plain value at path, or default when absent."""
        node = node_at(self.root, path)
        if node is None:
            return default
        return to_python(node)

    def has(self, *path: PathKey) -> bool:
        """Return True if a value exists at path."""
        return node_at(self.root, path) is not None

    def is_complete(self, *path: PathKey) -> bool:
        """Return True if the value at path exists and has been closed."""
        node = node_at(self.root, path)
        return node is not None and node.complete
