"""Streaming parser for the List Blobs XML response."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from xml.etree.ElementTree import ParseError, XMLPullParser

from .errors import ListFailed
from .types import BlobInfo, BlobListPage
from .utils import parse_http_date

CHUNK_SIZE = 64 * 1024


class ParseState(enum.Enum):
    OUTSIDE_BLOB = "outside_blob"
    IN_BLOB = "in_blob"
    IN_PROPERTIES = "in_properties"


class _BlobFields:
    __slots__ = ("name", "size", "last_modified", "content_type")

    def __init__(self) -> None:
        self.name: str | None = None
        self.size: int | None = None
        self.last_modified = None
        self.content_type: str | None = None

    def to_blob_info(self) -> BlobInfo | None:
        if not self.name:
            return None
        return BlobInfo(
            name=self.name,
            size=self.size,
            last_modified=self.last_modified,
            content_type=self.content_type,
        )


def _parse_length(text: str | None) -> int | None:
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


class BlobListParser:
    """Event-driven state machine over ``EnumerationResults``.

    Feed it bytes as they arrive; completed ``BlobInfo`` records accumulate
    in ``blobs`` and the continuation token, if any, in ``next_marker``.
    """

    def __init__(self) -> None:
        self._parser = XMLPullParser(events=("start", "end"))
        self._state = ParseState.OUTSIDE_BLOB
        self._current = _BlobFields()
        self.blobs: list[BlobInfo] = []
        self.next_marker: str | None = None

    @property
    def state(self) -> ParseState:
        return self._state

    def feed(self, data: bytes) -> None:
        try:
            self._parser.feed(data)
        except ParseError as exc:
            raise ListFailed(f"Failed to parse blob list: {exc}") from exc
        self._drain()

    def close(self) -> BlobListPage:
        try:
            self._parser.close()
        except ParseError as exc:
            raise ListFailed(f"Failed to parse blob list: {exc}") from exc
        self._drain()
        if self._state is not ParseState.OUTSIDE_BLOB:
            raise ListFailed("Failed to parse blob list: unterminated Blob element")
        return BlobListPage(blobs=self.blobs, next_marker=self.next_marker)

    def _drain(self) -> None:
        for event, elem in self._parser.read_events():
            if event == "start":
                self._on_start(elem.tag)
            else:
                self._on_end(elem.tag, elem.text)
                if self._state is ParseState.OUTSIDE_BLOB:
                    elem.clear()

    def _on_start(self, tag: str) -> None:
        if tag == "Blob":
            if self._state is not ParseState.OUTSIDE_BLOB:
                raise ListFailed("Failed to parse blob list: nested Blob element")
            self._state = ParseState.IN_BLOB
            self._current = _BlobFields()
        elif tag == "Properties":
            if self._state is not ParseState.IN_BLOB:
                raise ListFailed("Failed to parse blob list: Properties outside Blob")
            self._state = ParseState.IN_PROPERTIES

    def _on_end(self, tag: str, text: str | None) -> None:
        match self._state:
            case ParseState.OUTSIDE_BLOB:
                if tag == "NextMarker":
                    self.next_marker = text or None
            case ParseState.IN_BLOB:
                if tag == "Name":
                    self._current.name = text
                elif tag == "Blob":
                    info = self._current.to_blob_info()
                    if info is not None:
                        self.blobs.append(info)
                    self._state = ParseState.OUTSIDE_BLOB
            case ParseState.IN_PROPERTIES:
                if tag == "Last-Modified":
                    self._current.last_modified = parse_http_date(text)
                elif tag == "Content-Length":
                    self._current.size = _parse_length(text)
                elif tag == "Content-Type":
                    self._current.content_type = text or None
                elif tag == "Properties":
                    self._state = ParseState.IN_BLOB


def parse_blob_list_stream(chunks: Iterable[bytes]) -> BlobListPage:
    parser = BlobListParser()
    for chunk in chunks:
        parser.feed(chunk)
    return parser.close()


def parse_blob_list(payload: bytes) -> BlobListPage:
    view = memoryview(payload)
    return parse_blob_list_stream(
        view[offset : offset + CHUNK_SIZE].tobytes()
        for offset in range(0, len(view), CHUNK_SIZE)
    )


__all__ = [
    "ParseState",
    "BlobListParser",
    "parse_blob_list",
    "parse_blob_list_stream",
]
