# models.py
"""Data types shared by every pipeline stage."""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Article:
    """One vectorized article. The vector maps lemma -> occurrence count (>= 1)
    and must be treated as read-only once the article is built."""
    permalink: str
    path: str
    vector: dict
    unknown_words: int = 0

    @property
    def vocabulary_size(self):
        return len(self.vector)


@dataclass(frozen=True)
class SkippedArticle:
    """An input file excluded from the run, with the reason why."""
    path: str
    kind: str
    reason: str

    @classmethod
    def from_error(cls, error):
        return cls(path=error.path, kind=error.kind, reason=error.reason)


class SimilarityMatrix:
    """
    Symmetric permalink x permalink score table without self-entries.
    Every pair is stored in both directions with the same value.
    """
    def __init__(self, permalinks):
        self._scores = {permalink: {} for permalink in permalinks}

    @property
    def permalinks(self):
        return sorted(self._scores)

    def __len__(self):
        return len(self._scores)

    def __contains__(self, permalink):
        return permalink in self._scores

    def set_score(self, permalink1, permalink2, score):
        if permalink1 == permalink2:
            raise ValueError(f"Refusing to score {permalink1!r} against itself")
        self._scores[permalink1][permalink2] = score
        self._scores[permalink2][permalink1] = score

    def score(self, permalink1, permalink2):
        """Returns the score of a pair. Raises KeyError for self-pairs or unknown pairs."""
        return self._scores[permalink1][permalink2]

    def neighbors(self, permalink):
        """Returns a copy of {other_permalink: score} for one article."""
        return dict(self._scores[permalink])

    def pairs(self):
        """Yields each unordered pair once as (permalink1, permalink2, score), permalink1 < permalink2."""
        for permalink1 in self.permalinks:
            for permalink2, score in self._scores[permalink1].items():
                if permalink1 < permalink2:
                    yield permalink1, permalink2, score


@dataclass
class PipelineResult:
    """Everything a run computed, kept in memory so serialization can be retried."""
    top_k: dict
    matrix: SimilarityMatrix
    articles: list
    skipped: list = field(default_factory=list)
    timings: dict = field(default_factory=dict)
