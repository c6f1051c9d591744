# topmark:header:start
#
#   project      : PubSniff
#   file         : test_mediatype.py
#   file_relpath : tests/mediatype/test_mediatype.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `pubsniff.mediatype.MediaType` parsing, comparison and predicates."""

from __future__ import annotations

import pytest

from pubsniff import mediatype as mt
from pubsniff.errors import InvalidMediaType
from pubsniff.mediatype import MediaType
from tests.conftest import parametrize


def test_parse_normalizes_case_and_whitespace() -> None:
    """It should lowercase type, subtype and parameter names, and uppercase charset."""
    m: MediaType = MediaType.parse("  Text/HTML ;  Charset=utf-8 ; Level=1 ")
    assert m.type == "text"
    assert m.subtype == "html"
    assert m.charset == "UTF-8"
    assert dict(m.parameters) == {"charset": "UTF-8", "level": "1"}
    assert m.base_type == "text/html"


def test_parse_keeps_semicolons_inside_quoted_values() -> None:
    """It should not split a parameter at a ';' inside quotes."""
    m: MediaType = MediaType.parse('text/plain; title="a;b \\"c\\""; x=y')
    assert m.parameters["title"] == 'a;b "c"'
    assert m.parameters["x"] == "y"


@parametrize(
    "raw",
    [
        "text",
        "text/",
        "/html",
        "a/b/c",
        "text/html; charset",
        "text/html; =utf-8",
        'text/plain; title="unterminated',
        "te xt/html",
        "",
    ],
)
def test_parse_rejects_malformed_strings(raw: str) -> None:
    """It should raise InvalidMediaType (a ValueError) for malformed input."""
    with pytest.raises(InvalidMediaType) as excinfo:
        MediaType.parse(raw)
    assert isinstance(excinfo.value, ValueError)


def test_parse_or_none_is_lenient() -> None:
    """It should return None for unparsable or missing input and pass instances through."""
    assert MediaType.parse_or_none(None) is None
    assert MediaType.parse_or_none("nonsense") is None
    assert MediaType.parse_or_none(mt.EPUB) is mt.EPUB
    assert MediaType.parse_or_none("application/pdf") == mt.PDF


def test_equality_includes_parameters_but_not_their_order() -> None:
    """It should compare type, subtype and the parameter set."""
    a: MediaType = MediaType.parse("application/atom+xml;profile=opds-catalog;kind=navigation")
    b: MediaType = MediaType.parse("application/atom+xml;kind=navigation;profile=opds-catalog")
    assert a == b
    assert hash(a) == hash(b)
    assert a != MediaType.parse("application/atom+xml")
    assert MediaType.parse("text/html;charset=utf-8") == MediaType.parse("text/html;charset=UTF-8")


def test_str_renders_sorted_parameters() -> None:
    """It should render parameters sorted by name, quoting non-token values."""
    m: MediaType = MediaType.parse('text/plain; z=1; a="two words"')
    assert str(m) == 'text/plain;a="two words";z=1'
    assert str(MediaType.parse("Application/EPUB+ZIP")) == "application/epub+zip"


def test_matches_defaults_text_charset_to_utf8() -> None:
    """It should treat an undeclared text charset as UTF-8."""
    html: MediaType = MediaType.parse("text/html")
    assert html.matches("text/html;charset=utf-8")
    assert MediaType.parse("text/html;charset=utf-8").matches(html)
    assert not html.matches("text/html;charset=latin1")


def test_matches_ignores_parameters_present_on_one_side_only() -> None:
    """It should only compare parameters declared on both sides."""
    feed: str = "application/atom+xml;profile=opds-catalog;kind=acquisition"
    assert mt.OPDS1.matches(feed)
    assert MediaType.parse(feed).matches(mt.OPDS1)
    assert MediaType.parse("application/atom+xml").matches(mt.OPDS1)
    assert not mt.OPDS1.matches("application/atom+xml;profile=other")


def test_matches_honors_wildcards_on_both_sides() -> None:
    """It should treat '*' as a wildcard in either operand."""
    assert MediaType.parse("image/*").matches(mt.PNG)
    assert mt.PNG.matches("image/*")
    assert MediaType.parse("*/*").matches(mt.EPUB)
    assert not MediaType.parse("audio/*").matches(mt.PNG)


def test_matches_rejects_unparsable_or_missing_other() -> None:
    """It should never match a malformed string or None."""
    assert not mt.PDF.matches("pdf")
    assert not mt.PDF.matches(None)
    assert mt.PDF.matches_any("nonsense", "application/pdf")


def test_contains_requires_own_parameters_on_other() -> None:
    """It should honor wildcards on this side only and require every own parameter."""
    assert mt.OPDS1.contains("application/atom+xml;profile=opds-catalog;kind=acquisition")
    assert not mt.OPDS1.contains("application/atom+xml")
    assert MediaType.parse("image/*").contains(mt.PNG)
    assert not mt.PNG.contains("image/*")
    assert not mt.OPDS1_ENTRY.contains(mt.OPDS1)


def test_with_and_without_parameters() -> None:
    """It should derive new instances without mutating the original."""
    base: MediaType = mt.HTML
    with_charset: MediaType = base.with_parameters(charset="iso-8859-1")
    assert with_charset.charset == "ISO-8859-1"
    assert base.charset is None
    assert with_charset.without_parameters() == base


@parametrize(
    "media_type, expected",
    [
        (mt.EPUB, {"zip", "publication"}),
        (mt.ZIP, {"zip"}),
        (mt.OPDS2, {"json", "opds"}),
        (mt.OPDS1, {"xml", "opds"}),
        (mt.READIUM_WEBPUB_MANIFEST, {"json", "rwpm"}),
        (mt.XHTML, {"xml", "html"}),
        (mt.PNG, {"bitmap"}),
        (mt.MP3, {"audio"}),
        (mt.WEBM_VIDEO, {"video"}),
        (mt.LCP_PROTECTED_PDF, {"zip", "publication"}),
    ],
)
def test_structure_predicates(media_type: MediaType, expected: set[str]) -> None:
    """It should classify media types into structure families."""
    assert expected <= media_type.structures
    predicates: dict[str, bool] = {
        "zip": media_type.is_zip,
        "json": media_type.is_json,
        "xml": media_type.is_xml,
        "html": media_type.is_html,
        "bitmap": media_type.is_bitmap,
        "audio": media_type.is_audio,
        "video": media_type.is_video,
        "opds": media_type.is_opds,
        "rwpm": media_type.is_rwpm,
        "publication": media_type.is_publication,
    }
    for name in expected:
        assert predicates[name], name


def test_structured_syntax_suffix() -> None:
    """It should expose the '+suffix' of the subtype, if any."""
    assert mt.EPUB.structured_syntax_suffix == "+zip"
    assert mt.PDF.structured_syntax_suffix is None
    assert not mt.PDF.is_zip
    assert not mt.TEXT.is_json
