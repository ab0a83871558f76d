# datastore.py
"""
Input and output around the similarity pipeline: corpus discovery, the lemma
dictionary, the stopword list and the JSON result file.
"""
import json
import logging
import os
import tempfile
import zlib
from pathlib import Path

import brotli

from errors import SerializationFailure, UnreadableSource
from parallel import run_pool, split_evenly

logger = logging.getLogger(__name__)

DEFAULT_ARTICLE_PATTERN = "**/*.md"
DICTIONARY_FIELD_SEPARATOR = ";"
# Line chunks handed out per worker when building the dictionary / stopwords
CHUNKS_PER_WORKER = 4
# wbits value that lets zlib auto-detect both zlib and gzip headers
_AUTODETECT_WBITS = zlib.MAX_WBITS | 32


def discover_articles(corpus_root, pattern=DEFAULT_ARTICLE_PATTERN):
    """Returns the sorted list of article files under corpus_root matching the glob pattern."""
    root = Path(corpus_root)
    if not root.is_dir():
        raise UnreadableSource(root, "corpus root is not a readable directory")
    paths = sorted(path for path in root.glob(pattern) if path.is_file())
    logger.info("Found %d article files under %s", len(paths), root)
    return paths


def read_source_lines(path):
    """
    Reads a line-oriented UTF-8 resource. zlib-, gzip- or brotli-compressed
    files are decompressed transparently; anything else is read as plain text.
    """
    try:
        with open(path, "rb") as f:
            raw_data = f.read()
    except OSError as e:
        raise UnreadableSource(path, e.strerror or str(e)) from e

    try:
        # Try decompressing first
        data = zlib.decompress(raw_data, _AUTODETECT_WBITS)
    except zlib.error:
        try:
            # Brotli has no magic header; tried only after zlib/gzip
            data = brotli.decompress(raw_data)
        except brotli.error:
            # If decompression fails, it wasn't compressed
            data = raw_data

    try:
        return data.decode("utf-8").splitlines()
    except UnicodeDecodeError as e:
        raise UnreadableSource(path, f"not valid UTF-8 ({e.reason})") from e


def fold_dictionary_lines(lines):
    """Builds a partial {surface_form: lemma} mapping from 'lemma;surface_form[;...]' lines."""
    partial = {}
    for line in lines:
        fields = line.split(DICTIONARY_FIELD_SEPARATOR)
        if len(fields) < 2 or not fields[0].strip() or not fields[1].strip():
            if line.strip():
                logger.debug("Ignoring dictionary line without two fields: %r", line)
            continue
        # Keys are normalised like article tokens (trimmed, lower-cased); lemmas keep their case
        partial[fields[1].strip().lower()] = fields[0].strip()
    return partial


def fold_stopword_lines(lines):
    return {word for word in (line.strip().lower() for line in lines) if word}


def merge_dictionaries(partials):
    """Unions partial mappings in order; later chunks win on duplicate keys."""
    merged = {}
    for partial in partials:
        merged.update(partial)
    return merged


def build_dictionary(path, workers=1):
    """
    Builds the surface form -> lemma dictionary. Lines are folded into partial
    mappings per chunk and merged in file order, so the result equals a
    sequential read where the last occurrence of a surface form wins.
    """
    logger.info("Reading dictionary file %s", path)
    lines = read_source_lines(path)
    chunks = split_evenly(lines, max(1, workers) * CHUNKS_PER_WORKER)
    partials = run_pool(fold_dictionary_lines, [(chunk,) for chunk in chunks], workers, desc="Building dictionary")
    dictionary = merge_dictionaries(partials)
    logger.info("Dictionary ready: %d surface forms", len(dictionary))
    return dictionary


def build_stopwords(path, workers=1):
    logger.info("Reading stopwords file %s", path)
    lines = read_source_lines(path)
    chunks = split_evenly(lines, max(1, workers) * CHUNKS_PER_WORKER)
    partials = run_pool(fold_stopword_lines, [(chunk,) for chunk in chunks], workers, desc="Building stopwords")
    stopwords = frozenset().union(*partials)
    logger.info("Stopword set ready: %d words", len(stopwords))
    return stopwords


def write_results(top_k, output_path):
    """
    Writes {permalink: [neighbour permalinks]} as JSON. The file is written to a
    temporary sibling first and then moved into place.
    """
    output_path = Path(output_path)
    tmp_name = None
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=output_path.parent, prefix=f".{output_path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(top_k, f, ensure_ascii=False, sort_keys=True)
        os.replace(tmp_name, output_path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_name and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise SerializationFailure(output_path, str(e)) from e
    logger.info("Results for %d articles saved to %s", len(top_k), output_path)
    return output_path
