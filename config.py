# config.py
"""Run configuration: defaults, overridden by environment variables, overridden by CLI flags."""
import argparse
import logging
import os
from dataclasses import asdict, dataclass
from typing import Optional

from dotenv import load_dotenv

from datastore import DEFAULT_ARTICLE_PATTERN
from errors import ConfigError
from parallel import default_worker_count
from query import DEFAULT_TOP_K

ENV_PREFIX = "RELATED_POSTS_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class RelatedPostsConfig:
    corpus_root: str = "./_wordpress_posts"
    dictionary_path: str = "./polish.out"
    stopwords_path: str = "./stopwords.txt"
    output_path: str = "./results.json"
    top_k: int = DEFAULT_TOP_K
    workers: int = 1
    pattern: str = DEFAULT_ARTICLE_PATTERN
    report_path: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        if self.top_k < 1:
            raise ConfigError(f"top_k must be at least 1, got {self.top_k}")
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if not self.pattern:
            raise ConfigError("pattern must not be empty")
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"Invalid log level: {self.log_level}. Must be one of {list(LOG_LEVELS)}")


def setup_logging(level="INFO"):
    """Configure standard logging format for the CLI."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _env_int(name, default):
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{ENV_PREFIX}{name} must be an integer, got {value!r}") from exc


def config_from_env():
    """Builds a config from RELATED_POSTS_* environment variables (a .env file is honoured)."""
    load_dotenv()
    defaults = RelatedPostsConfig()
    return RelatedPostsConfig(
        corpus_root=os.getenv(ENV_PREFIX + "CORPUS_ROOT", defaults.corpus_root),
        dictionary_path=os.getenv(ENV_PREFIX + "DICTIONARY", defaults.dictionary_path),
        stopwords_path=os.getenv(ENV_PREFIX + "STOPWORDS", defaults.stopwords_path),
        output_path=os.getenv(ENV_PREFIX + "OUTPUT", defaults.output_path),
        top_k=_env_int("TOP_K", defaults.top_k),
        workers=_env_int("WORKERS", default_worker_count()),
        pattern=os.getenv(ENV_PREFIX + "PATTERN", defaults.pattern),
        report_path=os.getenv(ENV_PREFIX + "REPORT") or None,
        log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", defaults.log_level),
    )


def _positive_int(value):
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog="related-posts",
        description="Compute the most similar articles for every markdown article in a corpus.",
    )
    parser.add_argument("--corpus-root", help="Directory containing the markdown articles")
    parser.add_argument("--dictionary", dest="dictionary_path", help="Lemma dictionary file (lemma;form per line)")
    parser.add_argument("--stopwords", dest="stopwords_path", help="Stopword file (one word per line)")
    parser.add_argument("--output", dest="output_path", help="Where to write the JSON result")
    parser.add_argument("-k", "--top-k", type=_positive_int, help="Neighbours to keep per article")
    parser.add_argument("--workers", type=_positive_int, help="Worker processes (1 runs everything in-process)")
    parser.add_argument("--pattern", help="Glob pattern for article files, relative to the corpus root")
    parser.add_argument("--report", dest="report_path", help="Optional CSV run report")
    parser.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper, help="Logging verbosity")
    return parser


def load_config(argv=None):
    """Resolves the run configuration: CLI flag > environment variable > default."""
    args = build_parser().parse_args(argv)
    config = config_from_env()
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    if not overrides:
        return config
    merged = {**asdict(config), **overrides}
    return RelatedPostsConfig(**merged)
