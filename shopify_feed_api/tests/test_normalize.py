"""Tests for feed text normalization."""

import pytest

from app.core.feed.normalize import (
    clean_description,
    decode_entities,
    strip_markup,
    to_xml_safe_text,
    truncate_description,
)


class TestDecodeEntities:

    @pytest.mark.parametrize("entity, expected", [
        ("&nbsp;", " "),
        ("&amp;", "&"),
        ("&quot;", '"'),
        ("&apos;", "'"),
        ("&lt;", "<"),
        ("&gt;", ">"),
        ("&NBSP;", " "),
        ("&Amp;", "&"),
        ("&GT;", ">"),
    ])
    def test_known_entities_case_insensitive(self, entity, expected):
        assert decode_entities(f"a{entity}b") == f"a{expected}b"

    def test_unknown_entities_untouched(self):
        text = "caf&eacute; &copy; &#160; &#x27; & plain"
        assert decode_entities(text) == text

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert decode_entities(value) == ""

    def test_single_pass(self):
        # &amp;lt; is a literal "&lt;" once decoded, not "<"
        assert decode_entities("&amp;lt;") == "&lt;"


class TestXmlSafeText:

    def test_collapses_whitespace_and_nbsp(self):
        assert to_xml_safe_text(" a  \n b &nbsp;c ") == "a b c"

    def test_tabs_and_newlines(self):
        assert to_xml_safe_text("\tEau\r\nde   Parfum\t") == "Eau de Parfum"

    def test_drops_xml_illegal_control_characters(self):
        assert to_xml_safe_text("Creed\x00 \x08Aventus\x1f") == "Creed Aventus"

    def test_none(self):
        assert to_xml_safe_text(None) == ""


class TestStripMarkup:

    def test_script_content_not_leaked(self):
        assert strip_markup("<script>evil()</script><p>hi</p>") == "hi"

    def test_style_and_script_with_attributes(self):
        html = (
            '<style type="text/css">p { color: red; }</style>'
            '<div class="x">Top <b>notes</b></div>'
            '<SCRIPT src="a.js">var x = 1;</SCRIPT>'
        )
        assert strip_markup(html) == "Top notes"

    def test_unclosed_script_dropped_to_end(self):
        assert strip_markup("<p>hi</p><script>evil()") == "hi"
        assert strip_markup("<p>hi</p><style>p { color: red; }\n") == "hi"

    def test_block_tags_separate_words(self):
        assert strip_markup("<p>one</p><p>two</p>") == "one two"

    def test_empty(self):
        assert strip_markup(None) == ""


class TestTruncateDescription:

    def test_321_chars_truncated_to_320(self):
        result = truncate_description("x" * 321)
        assert len(result) == 320
        assert result.endswith("...")
        assert result[:317] == "x" * 317

    @pytest.mark.parametrize("length", [320, 300, 0])
    def test_short_enough_unchanged(self, length):
        text = "y" * length
        assert truncate_description(text) == text

    def test_custom_limit(self):
        assert truncate_description("abcdefghij", limit=8) == "abcde..."


def test_clean_description_pipeline():
    html = "<p>Fresh&nbsp;citrus</p>\n<ul><li>bergamot &amp; lemon</li></ul>"
    assert clean_description(html) == "Fresh citrus bergamot & lemon"


def test_clean_description_truncates_after_normalizing():
    html = "<p>" + "word " * 100 + "</p>"
    result = clean_description(html)
    assert len(result) == 320
    assert result.endswith("...")
