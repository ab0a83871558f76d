# core.py
import logging
import re

from nltk.tokenize import WhitespaceTokenizer

from errors import MalformedFrontMatter, MissingPermalink

logger = logging.getLogger(__name__)

FRONT_MATTER_SEPARATOR = "---"
ESCAPE_MARKER = "\\"

PERMALINK_PATTERN = re.compile(r"^[ \t]*permalink:[ \t]*(.*)$", re.MULTILINE)

# Stripping passes, applied in this order
CODE_BLOCK_PATTERN = re.compile(r"```\w*.*?```", re.DOTALL)
INLINE_CODE_PATTERN = re.compile(r"`[^`]*`")
LINK_PATTERN = re.compile(r"\[(.*?)\]\(.*?\)")
HTML_PATTERN = re.compile(r"<[^>]*>")
PUNCTUATION_PATTERN = re.compile(r"[-–—_,;:!?.'\"“”„()\[\]{}/#@$%^&*<>|`=]")


class TextCleaner:
    """Handles front matter parsing and markup removal for one article."""
    def __init__(self, separator=FRONT_MATTER_SEPARATOR):
        self.separator = separator

    def extract_permalink(self, text, source="<article>"):
        """
        Returns the trimmed value of the `permalink:` key. Only the front matter
        (everything before the second separator) is searched.
        """
        front_matter = self.separator.join(text.split(self.separator, 2)[:2])
        match = PERMALINK_PATTERN.search(front_matter)
        permalink = match.group(1).strip() if match else ""
        if not permalink:
            raise MissingPermalink(source, "no 'permalink:' key in front matter")
        return permalink

    def isolate_body(self, text, source="<article>"):
        """Returns the segment between the second and third separators (or the end of text)."""
        segments = text.split(self.separator)
        if len(segments) < 3:
            raise MalformedFrontMatter(
                source, f"expected front matter delimited by two '{self.separator}' lines"
            )
        return segments[2]

    @staticmethod
    def strip_markup(body):
        """
        Removes code blocks, inline code, link targets, HTML tags and punctuation.
        Code goes first so its fragments never reach the token stream.
        """
        body = CODE_BLOCK_PATTERN.sub(" ", body)
        body = INLINE_CODE_PATTERN.sub(" ", body)
        body = LINK_PATTERN.sub(r"\1", body)
        body = HTML_PATTERN.sub(" ", body)
        body = PUNCTUATION_PATTERN.sub(" ", body)
        return body

    def clean(self, raw_text, source="<article>"):
        """
        Lower-cases the article, then returns (permalink, cleaned_body).
        Raises MissingPermalink or MalformedFrontMatter.
        """
        text = raw_text.lower()
        permalink = self.extract_permalink(text, source)
        body = self.isolate_body(text, source)
        return permalink, self.strip_markup(body)


class Lemmatizer:
    """Maps surface forms to lemmas, dropping stopwords and junk tokens."""
    def __init__(self, dictionary, stopwords):
        # Both are shared read-only between articles
        self.dictionary = dictionary
        self.stopwords = stopwords
        self.tokenizer = WhitespaceTokenizer()

    def is_noise(self, token):
        return len(token) <= 1 or token.startswith(ESCAPE_MARKER) or token in self.stopwords

    def lemmatize(self, body, unknown=None):
        """
        Splits the cleaned body on whitespace and returns the lemma of every
        surviving token, repeats included. Tokens without a dictionary entry
        pass through unchanged; when `unknown` is a list they are appended to it.
        """
        lemmas = []
        for token in self.tokenizer.tokenize(body):
            word = token.strip()
            if self.is_noise(word):
                continue
            lemma = self.dictionary.get(word)
            if lemma is None:
                logger.debug("Missing dictionary entry for word %s", word)
                if unknown is not None:
                    unknown.append(word)
                lemma = word
            lemmas.append(lemma)
        return lemmas
