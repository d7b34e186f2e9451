from app.agents.retriever_agent import DisplayVerse
from utils.reference_parser import PsalmQuery


def test_load_verses_range_excludes_title(retriever):
    verses = retriever.load_verses(23, "1-3")
    assert [v.verse for v in verses] == [1, 2, 3]


def test_load_verses_whole_chapter(retriever):
    verses = retriever.load_verses(23, None)
    assert [v.verse for v in verses] == [1, 2, 3, 4, 5, 6]


def test_load_verses_never_returns_title_verse(retriever):
    assert retriever.load_verses(23, "0") == []
    assert [v.verse for v in retriever.load_verses(23, "0-2")] == [1, 2]


def test_load_verses_sorts_stored_order(retriever):
    verses = retriever.load_verses(1)
    assert [v.verse for v in verses] == [1, 2, 3]


def test_load_verses_single_verse(retriever):
    verses = retriever.load_verses(23, "4")
    assert len(verses) == 1
    assert verses[0].text.startswith("Yea, though I walk")


def test_load_verses_unknown_chapter_is_empty(retriever):
    assert retriever.load_verses(999, None) == []
    assert retriever.load_verses(999, "1-3") == []


def test_load_verses_reversed_range_is_empty(retriever):
    # Reversed ranges are not swapped; the filter simply matches nothing
    assert retriever.load_verses(23, "6-1") == []


def test_load_verses_lenient_range_fragments(retriever):
    # Non-numeric fragments are dropped, so "a-6" reads as verse 6
    assert [v.verse for v in retriever.load_verses(23, "a-6")] == [6]


def test_load_verses_range_past_end(retriever):
    assert [v.verse for v in retriever.load_verses(23, "5-40")] == [5, 6]


def test_resolve_builds_display_rows(retriever):
    rows = retriever.resolve(PsalmQuery(2, "1"))
    assert rows == [DisplayVerse(chapter=2, verse=1, text="Why do the heathen rage?")]
    assert rows[0].reference == "Psalm 2:1"
    assert rows[0].line == "Psalm 2:1 Why do the heathen rage?"


def test_chapter_numbers(retriever):
    assert retriever.chapter_numbers() == [1, 2, 23]
