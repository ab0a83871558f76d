# query.py
import heapq  # For efficiently finding top-k neighbours
import logging
import math

from models import SimilarityMatrix
from parallel import run_pool, split_evenly

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 3
# Work units handed out per worker when partitioning pairs / articles
CHUNKS_PER_WORKER = 4


def squared_magnitude(vector):
    return sum(count * count for count in vector.values())


def cosine_similarity(vector1, vector2, squared1=None, squared2=None):
    """
    cos(a, b) = a . b / (||a|| ||b||), clamped to [0, 1].

    Only lemmas present in both vectors contribute to the dot product.
    A zero-magnitude vector scores 0.0 against everything.
    Precomputed squared magnitudes can be passed to avoid recomputing them per pair.
    """
    if squared1 is None:
        squared1 = squared_magnitude(vector1)
    if squared2 is None:
        squared2 = squared_magnitude(vector2)
    if squared1 == 0 or squared2 == 0:
        return 0.0

    common = vector1.keys() & vector2.keys()
    dot = sum(vector1[lemma] * vector2[lemma] for lemma in common)
    # sqrt of the product keeps identical vectors at exactly 1.0
    score = dot / math.sqrt(squared1 * squared2)
    return min(max(score, 0.0), 1.0)


def partition_upper_triangle(n, parts):
    """
    Splits the rows of the strict upper triangle of an n x n pair space into
    contiguous (start, end) row ranges holding roughly equal numbers of pairs.
    Row i owns the pairs (i, j) for j > i.
    """
    total_pairs = n * (n - 1) // 2
    if total_pairs == 0:
        return []
    parts = max(1, min(parts, n - 1))
    target = total_pairs / parts

    ranges = []
    start = 0
    pairs_so_far = 0
    for row in range(n - 1):
        pairs_so_far += n - 1 - row
        if len(ranges) < parts - 1 and pairs_so_far >= target * (len(ranges) + 1):
            ranges.append((start, row + 1))
            start = row + 1
    if start < n - 1:
        ranges.append((start, n - 1))
    return ranges


# --- Multiprocessing plumbing ---
_WORKER_VECTORS = None


def init_scoring_worker(vectors):
    global _WORKER_VECTORS
    _WORKER_VECTORS = [(vector, squared_magnitude(vector)) for vector in vectors]


def score_rows(start, end):
    """Scores every pair (i, j) with start <= i < end and j > i. Returns a local list of (i, j, score)."""
    vectors = _WORKER_VECTORS
    partial = []
    for i in range(start, end):
        vector1, squared1 = vectors[i]
        for j in range(i + 1, len(vectors)):
            vector2, squared2 = vectors[j]
            partial.append((i, j, cosine_similarity(vector1, vector2, squared1, squared2)))
    return partial


def rank_neighbors(neighbors, k):
    """Returns up to k permalinks from {permalink: score}, best first, ties broken by permalink."""
    best = heapq.nsmallest(k, neighbors.items(), key=lambda item: (-item[1], item[0]))
    return [permalink for permalink, _ in best]


def rank_chunk(chunk, k):
    return [(permalink, rank_neighbors(neighbors, k)) for permalink, neighbors in chunk]


class SimilarityEngine:
    """Computes the pairwise cosine similarity matrix for a corpus."""
    def __init__(self, workers=1):
        self.workers = workers

    def compute(self, articles):
        """
        Scores every unordered pair of distinct articles exactly once.
        Workers each score a slice of the upper triangle and return their own
        partial results, which are merged here into a fresh matrix.
        """
        ordered = sorted(articles, key=lambda a: a.permalink)
        permalinks = [a.permalink for a in ordered]
        if len(set(permalinks)) != len(permalinks):
            raise ValueError("Permalinks must be unique before scoring")

        matrix = SimilarityMatrix(permalinks)
        row_ranges = partition_upper_triangle(len(ordered), max(1, self.workers) * CHUNKS_PER_WORKER)
        logger.info(
            "Scoring %d article pairs in %d partitions",
            len(ordered) * (len(ordered) - 1) // 2,
            len(row_ranges),
        )
        partials = run_pool(
            score_rows,
            row_ranges,
            self.workers,
            desc="Scoring article pairs",
            initializer=init_scoring_worker,
            initargs=([a.vector for a in ordered],),
        )
        for partial in partials:
            for i, j, score in partial:
                matrix.set_score(permalinks[i], permalinks[j], score)
        return matrix


class TopKSelector:
    """Picks the k most similar neighbours of every article."""
    def __init__(self, k=DEFAULT_TOP_K, workers=1):
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.workers = workers

    def select(self, matrix):
        """
        Returns {permalink: [neighbour permalinks, best first]}. Each list holds
        min(k, N - 1) entries, so small corpora simply yield shorter lists.
        """
        items = [(permalink, matrix.neighbors(permalink)) for permalink in matrix.permalinks]
        chunks = split_evenly(items, max(1, self.workers) * CHUNKS_PER_WORKER)
        ranked = run_pool(
            rank_chunk,
            [(chunk, self.k) for chunk in chunks],
            self.workers,
            desc="Selecting top neighbours",
        )
        return {permalink: neighbours for chunk in ranked for permalink, neighbours in chunk}
