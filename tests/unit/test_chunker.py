"""Unit tests for the chunking engine."""

import pytest

from docqa.ingestion.chunker import ChunkingEngine, Passage


def _numbered_text(n: int) -> str:
    return " ".join(f"Sentence {i} describes item {i * 7} in detail." for i in range(n))


def _stitch(passages: list[Passage]) -> str:
    text = ""
    for p in passages:
        text = text[: p.start] + p.content
    return text


def test_split_long_text_into_multiple_passages() -> None:
    """A segment longer than chunk_size should be split."""
    engine = ChunkingEngine(chunk_size=256, chunk_overlap=32)
    passages = engine.split([_numbered_text(60)])
    assert len(passages) > 1


def test_passages_never_exceed_chunk_size() -> None:
    engine = ChunkingEngine(chunk_size=120, chunk_overlap=20)
    passages = engine.split([_numbered_text(40)])
    assert all(len(p.content) <= 120 for p in passages)


def test_passages_cover_the_segment() -> None:
    """Stitching passages at their offsets reproduces the original text."""
    text = _numbered_text(50) + "\n\n" + _numbered_text(30)
    engine = ChunkingEngine(chunk_size=150, chunk_overlap=30)
    passages = engine.split([text])
    assert passages[0].start == 0
    assert _stitch(passages) == text


def _word_text(n: int) -> str:
    return " ".join(f"token{i}" for i in range(n))


def test_consecutive_passages_share_their_overlap() -> None:
    """The tail of each passage is the head of the next one."""
    engine = ChunkingEngine(chunk_size=150, chunk_overlap=30)
    passages = engine.split([_word_text(300)])
    assert len(passages) > 2
    for prev, nxt in zip(passages, passages[1:]):
        shared = prev.end - nxt.start
        assert 0 < shared <= 30
        assert prev.content[nxt.start - prev.start :] == nxt.content[:shared]


@pytest.mark.parametrize(
    ("text", "chunk_size", "chunk_overlap"),
    [("a" * 3000, 1000, 200), ("ab " * 1000, 100, 20)],
)
def test_repetitive_text_offsets(text: str, chunk_size: int, chunk_overlap: int) -> None:
    engine = ChunkingEngine(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    passages = engine.split([text])

    assert all(p.start >= 0 for p in passages)
    assert _stitch(passages) == text
    for prev, nxt in zip(passages, passages[1:]):
        assert 0 < prev.end - nxt.start <= chunk_overlap


def test_uniform_text_overlaps_by_chunk_overlap() -> None:
    passages = ChunkingEngine(chunk_size=1000, chunk_overlap=200).split(["a" * 3000])
    assert [p.start for p in passages] == [0, 800, 1600, 2400]
    assert passages[-1].end == 3000


def test_each_segment_is_chunked_in_order() -> None:
    engine = ChunkingEngine(chunk_size=100, chunk_overlap=10)
    segments = [_numbered_text(10), "", _numbered_text(5)]
    passages = engine.split(segments)

    assert [p.segment for p in passages] == sorted(p.segment for p in passages)
    assert {p.segment for p in passages} == {0, 2}
    assert _stitch([p for p in passages if p.segment == 2]) == segments[2]


def test_short_segment_is_a_single_passage() -> None:
    engine = ChunkingEngine(chunk_size=256, chunk_overlap=0)
    passages = engine.split(["Short text."])
    assert passages == [Passage(content="Short text.", segment=0, start=0)]


def test_empty_input() -> None:
    """An empty list should return an empty list."""
    assert ChunkingEngine().split([]) == []


@pytest.mark.parametrize(
    ("chunk_size", "chunk_overlap"),
    [(0, 0), (-5, 0), (100, -1), (100, 100), (100, 150)],
)
def test_invalid_parameters_rejected(chunk_size: int, chunk_overlap: int) -> None:
    with pytest.raises(ValueError):
        ChunkingEngine(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
