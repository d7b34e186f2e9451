import json
import pytest

from app.agents.retriever_agent import PsalmRetrieverAgent
from db.corpus import load_corpus, reset_corpus


SAMPLE_BOOK = {
    "book": {
        "title": "Psalms",
        "chapters": [
            {
                "chapter": 1,
                "verses": [
                    {"verse": 2, "text": "But his delight is in the law of the LORD."},
                    {"verse": 1, "text": "Blessed is the man."},
                    {"verse": 3, "text": "And he shall be like a tree."},
                ],
            },
            {
                "chapter": 2,
                "verses": [
                    {"verse": 1, "text": "Why do the heathen rage?"},
                    {"verse": 2, "text": "The kings of the earth set themselves."},
                ],
            },
            {
                "chapter": 23,
                "verses": [
                    {"verse": 0, "text": "A Psalm of David."},
                    {"verse": 1, "text": "The LORD is my shepherd; I shall not want."},
                    {"verse": 2, "text": "He maketh me to lie down in green pastures."},
                    {"verse": 3, "text": "He restoreth my soul."},
                    {"verse": 4, "text": "Yea, though I walk through the valley."},
                    {"verse": 5, "text": "Thou preparest a table before me."},
                    {"verse": 6, "text": "Surely goodness and mercy shall follow me."},
                ],
            },
        ],
    }
}


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "psalms.json"
    path.write_text(json.dumps(SAMPLE_BOOK), encoding="utf-8")
    return path


@pytest.fixture
def corpus(corpus_file):
    return load_corpus(corpus_file)


@pytest.fixture
def retriever(corpus):
    return PsalmRetrieverAgent(corpus)


@pytest.fixture(autouse=True)
def fresh_corpus_cache():
    reset_corpus()
    yield
    reset_corpus()
