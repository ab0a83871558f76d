"""Tests for core module: front matter parsing, markup stripping, lemmatization."""

import pytest

from core import Lemmatizer, TextCleaner
from errors import MalformedFrontMatter, MissingPermalink


class TestExtractPermalink:
    def test_reads_value_and_trims_it(self):
        text = "---\ntitle: hello\npermalink:   /2020/01/hello/  \n---\nbody"
        assert TextCleaner().extract_permalink(text) == "/2020/01/hello/"

    def test_missing_key_raises(self):
        text = "---\ntitle: hello\n---\nbody"
        with pytest.raises(MissingPermalink):
            TextCleaner().extract_permalink(text, "post.md")

    def test_empty_value_raises(self):
        text = "---\npermalink:\ntitle: hello\n---\nbody"
        with pytest.raises(MissingPermalink):
            TextCleaner().extract_permalink(text)

    def test_key_in_body_is_ignored(self):
        text = "---\ntitle: hello\n---\npermalink: /not/front/matter/"
        with pytest.raises(MissingPermalink):
            TextCleaner().extract_permalink(text)

    def test_error_carries_path(self):
        with pytest.raises(MissingPermalink) as exc_info:
            TextCleaner().extract_permalink("---\n---\n", "posts/a.md")
        assert exc_info.value.path == "posts/a.md"


class TestIsolateBody:
    def test_returns_text_after_second_separator(self):
        text = "---\npermalink: /a/\n---\nthe body"
        assert TextCleaner().isolate_body(text) == "\nthe body"

    def test_body_ends_at_third_separator(self):
        text = "---\npermalink: /a/\n---\nfirst part\n---\nsecond part"
        assert TextCleaner().isolate_body(text) == "\nfirst part\n"

    def test_table_rule_ends_body(self):
        text = "---\npermalink: /a/\n---\nalpha\n\n| col |\n|---|\n| gamma |\n---\nbeta\n"
        permalink, body = TextCleaner().clean(text)
        assert permalink == "/a/"
        assert body.split() == ["alpha", "col"]

    def test_missing_separators_raise(self):
        with pytest.raises(MalformedFrontMatter):
            TextCleaner().isolate_body("permalink: /a/\njust text")


class TestStripMarkup:
    def test_removes_fenced_code_block_with_language(self):
        body = "before\n```python\nimport os\nprint(os.name)\n```\nafter"
        assert TextCleaner.strip_markup(body).split() == ["before", "after"]

    def test_removes_fenced_code_block_without_language(self):
        body = "before\n```\nsecret code\n```\nafter"
        assert TextCleaner.strip_markup(body).split() == ["before", "after"]

    def test_removes_inline_code(self):
        assert TextCleaner.strip_markup("call `do_stuff()` now").split() == ["call", "now"]

    def test_keeps_link_text_drops_url(self):
        result = TextCleaner.strip_markup("see [the docs](https://example.com/docs) here")
        assert result.split() == ["see", "the", "docs", "here"]

    def test_strips_html_tags(self):
        assert TextCleaner.strip_markup("<p>hello <b>world</b></p>").split() == ["hello", "world"]

    def test_strips_punctuation(self):
        result = TextCleaner.strip_markup("well, this: is (quite) \"odd\" — really?! #tag @me")
        assert result.split() == ["well", "this", "is", "quite", "odd", "really", "tag", "me"]

    def test_is_idempotent(self):
        body = (
            "intro `x = 1` text\n```js\nvar a = 1;\n```\n"
            "[link text](http://a.b/c) <em>emph</em> end. done!"
        )
        once = TextCleaner.strip_markup(body)
        assert TextCleaner.strip_markup(once) == once


class TestClean:
    def test_lowercases_before_parsing(self):
        raw = "---\nPermalink: /Hello/World/\n---\nHello WORLD"
        permalink, body = TextCleaner().clean(raw)
        assert permalink == "/hello/world/"
        assert body.split() == ["hello", "world"]

    def test_missing_permalink_reported_before_structure(self):
        with pytest.raises(MissingPermalink):
            TextCleaner().clean("no front matter at all")

    def test_malformed_front_matter(self):
        with pytest.raises(MalformedFrontMatter):
            TextCleaner().clean("permalink: /a/\nno separators here")


class TestLemmatizer:
    def _lemmatizer(self):
        return Lemmatizer({"cats": "cat", "dogs": "dog"}, frozenset({"the"}))

    def test_maps_known_words_and_passes_unknown_through(self):
        assert self._lemmatizer().lemmatize("the cats and dogs") == ["cat", "and", "dog"]

    def test_drops_short_escaped_and_stop_tokens(self):
        assert self._lemmatizer().lemmatize("a \\n the x \\escaped cats") == ["cat"]

    def test_collects_unknown_words(self):
        unknown = []
        self._lemmatizer().lemmatize("cats birds fish", unknown=unknown)
        assert unknown == ["birds", "fish"]

    def test_keeps_repeats(self):
        assert self._lemmatizer().lemmatize("cats cats dogs") == ["cat", "cat", "dog"]

    def test_same_form_always_same_lemma(self):
        lemmatizer = self._lemmatizer()
        first = lemmatizer.lemmatize("cats dogs")
        second = lemmatizer.lemmatize("dogs cats")
        assert sorted(first) == sorted(second)

    def test_empty_body(self):
        assert self._lemmatizer().lemmatize("   \n ") == []
