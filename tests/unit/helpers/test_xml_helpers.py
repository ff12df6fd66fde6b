"""Unit tests for pubminer.helpers.xml_helpers."""

import pytest

from pubminer.data_sources.base_client import InvalidDocumentFormatError
from pubminer.helpers.xml_helpers import dig, parse_xml, strip_inline_markup, text_of


class TestParseXml:
    def test_attributes_and_text(self):
        doc = parse_xml('<root><item Label="A">hello</item></root>')

        assert doc == {"root": {"item": {"@Label": "A", "#text": "hello"}}}

    def test_repeated_siblings_become_list(self):
        doc = parse_xml("<root><p>one</p><p>two</p></root>")

        assert doc["root"]["p"] == ["one", "two"]

    def test_text_only_element_is_string(self):
        assert parse_xml("<root><p>one</p></root>") == {"root": {"p": "one"}}

    def test_mixed_content_is_flattened(self):
        doc = parse_xml("<p>We treated <italic>E. coli</italic> infections</p>")

        assert doc == {"p": "We treated E. coli infections"}

    def test_accepts_bytes(self):
        assert parse_xml(b"<root>x</root>") == {"root": "x"}

    @pytest.mark.parametrize("raw", ["", "   ", b""])
    def test_empty_document_raises(self, raw):
        with pytest.raises(InvalidDocumentFormatError) as exc_info:
            parse_xml(raw)

        assert exc_info.value.step == "parse"

    def test_malformed_document_raises_with_fragment(self):
        with pytest.raises(InvalidDocumentFormatError) as exc_info:
            parse_xml("not valid xml <unclosed", record_id="123")

        assert "failed to parse XML" in str(exc_info.value)
        assert exc_info.value.record_id == "123"
        assert exc_info.value.fragment.startswith("not valid xml")


class TestDig:
    def test_follows_path(self):
        assert dig({"a": {"b": {"c": 1}}}, "a", "b", "c") == 1

    def test_gap_returns_none(self):
        assert dig({"a": {"b": None}}, "a", "b", "c") is None
        assert dig({"a": "text"}, "a", "b") is None

    def test_enters_lists_through_first_element(self):
        assert dig({"a": [{"b": 1}, {"b": 2}]}, "a", "b") == 1
        assert dig({"a": []}, "a", "b") is None


class TestTextOf:
    @pytest.mark.parametrize(
        "node, expected",
        [
            ("plain", "plain"),
            ({"@Label": "X", "#text": "labeled"}, "labeled"),
            ({"title": "T", "p": "para"}, "para"),
            ({"p": ["one", {"#text": "two", "@id": "p2"}]}, "one\n\ntwo"),
            ({"@Label": "X"}, None),
            (None, None),
            ([], None),
        ],
    )
    def test_text_payload(self, node, expected):
        assert text_of(node) == expected


class TestStripInlineMarkup:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("CO<sub>2</sub>", "CO2"),
            ('<bold id="b1">Bold</bold> text', "Bold text"),
            ('ref<xref ref-type="bibr" rid="r1"/>.', "ref."),
            ("<body><b>x</b></body>", "<body>x</body>"),
            ("<subject>s</subject><sup>2</sup>", "<subject>s</subject>2"),
        ],
    )
    def test_only_inline_tags_are_removed(self, raw, expected):
        assert strip_inline_markup(raw) == expected
