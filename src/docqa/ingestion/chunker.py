"""Text chunking — overlapping passages for embedding."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from langchain_text_splitters import RecursiveCharacterTextSplitter

DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


@dataclass(frozen=True)
class Passage:
    """A contiguous span of one source segment.

    Attributes
    ----------
    content:
        The passage text; always an exact substring of its segment.
    segment:
        Index of the source segment (page) the passage came from.
    start:
        Character offset of ``content`` within that segment.
    """

    content: str
    segment: int
    start: int

    @property
    def end(self) -> int:
        return self.start + len(self.content)


class ChunkingEngine:
    """Split ordered text segments into overlapping passages.

    Passages never exceed ``chunk_size`` characters and consecutive
    passages of a segment share at most ``chunk_overlap`` characters.
    Whitespace and separators are kept, so stitching a segment's passages
    at their ``start`` offsets reproduces the segment exactly.

    Parameters
    ----------
    chunk_size:
        Maximum number of characters per passage.
    chunk_overlap:
        Number of overlapping characters between consecutive passages.
    separators:
        Split boundaries, in priority order.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: list[str] | None = None,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be >= 0 and < chunk_size ({chunk_size})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            length_function=len,
            separators=separators or DEFAULT_SEPARATORS,
            keep_separator=True,
            strip_whitespace=False,
            # Each start is the earliest match at or after the previous
            # passage's end minus the overlap.
            add_start_index=True,
        )

    def split(self, segments: Iterable[str]) -> list[Passage]:
        """Chunk every segment in order and return the flattened passages."""
        passages: list[Passage] = []
        for index, text in enumerate(segments):
            passages.extend(self._split_segment(index, text))
        return passages

    def _split_segment(self, index: int, text: str) -> list[Passage]:
        if not text:
            return []

        passages: list[Passage] = []
        for doc in self._splitter.create_documents([text]):
            start = doc.metadata["start_index"]
            if start < 0:
                raise ValueError(f"Could not locate passage {len(passages)} of segment {index}")
            passages.append(Passage(content=doc.page_content, segment=index, start=start))
        return passages
