"""Shared fixtures: small on-disk corpora, dictionaries and stopword lists."""

import pytest

from config import ENV_PREFIX, RelatedPostsConfig


def render_article(permalink, body, title="Post"):
    header = f"title: {title}\n"
    if permalink is not None:
        header += f"permalink: {permalink}\n"
    return f"---\n{header}---\n{body}\n"


@pytest.fixture
def corpus_dir(tmp_path):
    root = tmp_path / "posts"
    root.mkdir()
    return root


@pytest.fixture
def write_article(corpus_dir):
    """Returns a writer: write_article(name, permalink, body) -> path. permalink=None omits the key."""
    def _write(name, permalink, body, title="Post"):
        path = corpus_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_article(permalink, body, title), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def dictionary_file(tmp_path):
    path = tmp_path / "dictionary.txt"
    path.write_text(
        "kot;koty\n"
        "kot;kota\n"
        "kot;kot\n"
        "pies;psy\n"
        "pies;psa\n"
        "dom;domy\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def stopwords_file(tmp_path):
    path = tmp_path / "stopwords.txt"
    path.write_text("i\noraz\nthe\nand\n", encoding="utf-8")
    return path


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("CORPUS_ROOT", "DICTIONARY", "STOPWORDS", "OUTPUT", "TOP_K",
                 "WORKERS", "PATTERN", "REPORT", "LOG_LEVEL"):
        monkeypatch.delenv(ENV_PREFIX + name, raising=False)


@pytest.fixture
def make_config(corpus_dir, dictionary_file, stopwords_file, tmp_path):
    def _make(**overrides):
        values = {
            "corpus_root": str(corpus_dir),
            "dictionary_path": str(dictionary_file),
            "stopwords_path": str(stopwords_file),
            "output_path": str(tmp_path / "out" / "results.json"),
            "top_k": 3,
            "workers": 1,
        }
        values.update(overrides)
        return RelatedPostsConfig(**values)
    return _make
