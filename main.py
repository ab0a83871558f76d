# main.py
import logging
import multiprocessing
import sys
import time

from config import load_config, setup_logging
from datastore import build_dictionary, build_stopwords, discover_articles, write_results
from errors import ConfigError, RelatedPostsError
from indexer import vectorize_corpus
from models import PipelineResult
from query import SimilarityEngine, TopKSelector
from report import RunReport

logger = logging.getLogger(__name__)


def run_pipeline(config):
    """
    Runs every stage for one corpus and returns the in-memory PipelineResult.
    Nothing is written to disk here, so a failed write can be retried from the result.

    Raises UnreadableSource when the corpus root, dictionary or stopwords are unusable.
    Malformed articles are skipped and listed in result.skipped.
    """
    timings = {}

    start = time.perf_counter()
    paths = discover_articles(config.corpus_root, config.pattern)
    dictionary = build_dictionary(config.dictionary_path, config.workers)
    stopwords = build_stopwords(config.stopwords_path, config.workers)
    timings["load"] = time.perf_counter() - start

    start = time.perf_counter()
    articles, skipped = vectorize_corpus(paths, dictionary, stopwords, workers=config.workers)
    timings["vectorize"] = time.perf_counter() - start

    start = time.perf_counter()
    matrix = SimilarityEngine(workers=config.workers).compute(articles)
    timings["similarity"] = time.perf_counter() - start

    start = time.perf_counter()
    if len(articles) <= config.top_k:
        logger.info(
            "Corpus has %d articles; each gets at most %d neighbours instead of %d",
            len(articles), max(len(articles) - 1, 0), config.top_k,
        )
    top_k = TopKSelector(k=config.top_k, workers=config.workers).select(matrix)
    timings["top_k"] = time.perf_counter() - start

    return PipelineResult(top_k=top_k, matrix=matrix, articles=articles, skipped=skipped, timings=timings)


def main(argv=None):
    try:
        config = load_config(argv)
    except ConfigError as e:
        setup_logging()
        logger.error("Invalid configuration: %s", e)
        return 1

    setup_logging(config.log_level)
    logger.info(
        "Computing top %d related articles for %s using %d worker(s)",
        config.top_k, config.corpus_root, config.workers,
    )

    try:
        result = run_pipeline(config)
        write_results(result.top_k, config.output_path)
    except RelatedPostsError as e:
        logger.error("Run aborted: %s", e)
        return 1

    report = RunReport(result)
    report.log_summary()
    if config.report_path:
        try:
            report.save_csv(config.report_path)
        except OSError as e:
            logger.warning("Could not save run report to %s: %s", config.report_path, e)
    return 0


# --- Script Entry Point ---
if __name__ == "__main__":
    # Crucial for multiprocessing compatibility on Windows/macOS
    multiprocessing.freeze_support()
    sys.exit(main())
