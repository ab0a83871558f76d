# errors.py
"""Exception types raised by the related-posts pipeline.

Whole-run failures (UnreadableSource, SerializationFailure, ConfigError) abort
the run. ArticleError subclasses only ever cost the offending article.
"""


class RelatedPostsError(Exception):
    """Base class for every error raised by this project."""


class ConfigError(RelatedPostsError):
    """Invalid configuration value."""


class UnreadableSource(RelatedPostsError):
    """Corpus root, dictionary or stopword file could not be opened or decoded."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path}: {reason}")


class SerializationFailure(RelatedPostsError):
    """Writing the final result failed. The computed result is still in memory."""

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot write results to {self.path}: {reason}")


class ArticleError(RelatedPostsError):
    """A single article could not be processed; the rest of the run continues."""
    kind = "article_error"

    def __init__(self, path, reason):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class MissingPermalink(ArticleError):
    kind = "missing_permalink"


class MalformedFrontMatter(ArticleError):
    kind = "malformed_front_matter"


class UnreadableArticle(ArticleError):
    kind = "unreadable_article"


class DuplicatePermalink(ArticleError):
    kind = "duplicate_permalink"
