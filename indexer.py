# indexer.py
import logging
from pathlib import Path

from nltk.probability import FreqDist

from core import FRONT_MATTER_SEPARATOR, Lemmatizer, TextCleaner
from errors import ArticleError, DuplicatePermalink, UnreadableArticle
from models import Article, SkippedArticle
from parallel import run_pool, split_evenly

logger = logging.getLogger(__name__)

# Chunks handed out per worker; more chunks keeps the progress bar moving
CHUNKS_PER_WORKER = 4


def build_term_vector(lemmas):
    """Counts occurrences of each distinct lemma. Every count is >= 1."""
    return dict(FreqDist(lemmas))


class TermFrequencyIndexer:
    """Turns article files into Article objects (permalink + term-frequency vector)."""
    def __init__(self, dictionary, stopwords, separator=FRONT_MATTER_SEPARATOR):
        self.text_cleaner = TextCleaner(separator)
        self.lemmatizer = Lemmatizer(dictionary, stopwords)

    @staticmethod
    def read_article(path):
        try:
            return Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise UnreadableArticle(path, f"not valid UTF-8 ({e.reason})") from e
        except OSError as e:
            raise UnreadableArticle(path, e.strerror or str(e)) from e

    def vectorize_text(self, raw_text, source="<article>"):
        permalink, body = self.text_cleaner.clean(raw_text, source)
        unknown = []
        lemmas = self.lemmatizer.lemmatize(body, unknown=unknown)
        return Article(
            permalink=permalink,
            path=str(source),
            vector=build_term_vector(lemmas),
            unknown_words=len(unknown),
        )

    def process_article(self, path):
        """Read -> clean -> lemmatize -> count. Raises an ArticleError subclass on failure."""
        return self.vectorize_text(self.read_article(path), source=str(path))

    def build_index_chunk(self, paths):
        """
        Processes a chunk of article paths. A failing article is recorded as
        skipped and never affects the others. Returns (articles, skipped).
        """
        articles = []
        skipped = []
        for path in paths:
            try:
                articles.append(self.process_article(path))
            except ArticleError as e:
                skipped.append(SkippedArticle.from_error(e))
        return articles, skipped


# --- Multiprocessing plumbing ---
# Each worker builds its own indexer once; the dictionary and stopwords are only read afterwards.
_WORKER_INDEXER = None


def init_worker(dictionary, stopwords, separator=FRONT_MATTER_SEPARATOR):
    global _WORKER_INDEXER
    _WORKER_INDEXER = TermFrequencyIndexer(dictionary, stopwords, separator)


def process_chunk_wrapper(paths):
    return _WORKER_INDEXER.build_index_chunk(paths)


def resolve_duplicate_permalinks(articles):
    """
    Keeps the first article (by path) for each permalink.
    Returns (unique_articles sorted by permalink, skipped duplicates).
    """
    owners = {}
    skipped = []
    for article in sorted(articles, key=lambda a: a.path):
        owner = owners.get(article.permalink)
        if owner is None:
            owners[article.permalink] = article
            continue
        error = DuplicatePermalink(
            article.path, f"permalink '{article.permalink}' already used by {owner.path}"
        )
        skipped.append(SkippedArticle.from_error(error))
    return [owners[permalink] for permalink in sorted(owners)], skipped


def vectorize_corpus(paths, dictionary, stopwords, workers=1, separator=FRONT_MATTER_SEPARATOR):
    """
    Vectorizes every article path, in parallel chunks when workers > 1.
    Returns (articles sorted by permalink, skipped articles sorted by path).
    """
    chunks = split_evenly(paths, max(1, workers) * CHUNKS_PER_WORKER)
    results = run_pool(
        process_chunk_wrapper,
        [(chunk,) for chunk in chunks],
        workers,
        desc="Vectorizing articles",
        initializer=init_worker,
        initargs=(dictionary, stopwords, separator),
    )

    articles = []
    skipped = []
    for chunk_articles, chunk_skipped in results:
        articles.extend(chunk_articles)
        skipped.extend(chunk_skipped)

    articles, duplicates = resolve_duplicate_permalinks(articles)
    skipped.extend(duplicates)
    skipped.sort(key=lambda s: s.path)

    for item in skipped:
        logger.warning("Skipping %s (%s): %s", item.path, item.kind, item.reason)
    unknown_total = sum(a.unknown_words for a in articles)
    if unknown_total:
        logger.info("%d tokens had no dictionary entry and were kept as-is", unknown_total)
    logger.info("Vectorized %d articles, skipped %d", len(articles), len(skipped))
    return articles, skipped
