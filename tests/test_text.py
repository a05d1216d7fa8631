import html

import pytest

from app.utils.text import mask_email, sanitize_block, sanitize_line, strip_markup


def test_header_injection_removed_from_line() -> None:
    cleaned = sanitize_line("Evil\r\nBcc: attacker@x.com")
    assert "\r" not in cleaned
    assert "\n" not in cleaned
    assert ":" not in cleaned
    assert cleaned == "Evil Bcc attacker@x.com"


def test_semicolons_removed_from_line() -> None:
    assert sanitize_line("Jane; Doe") == "Jane Doe"


def test_markup_removed_entirely() -> None:
    assert strip_markup('<b onclick="x()">Bold</b> text') == "Bold text"
    assert sanitize_line("<script>alert(1)</script>Jane") == "Jane"
    assert sanitize_line("<img src=x onerror=alert(1)>Jane") == "Jane"


def test_block_keeps_line_breaks() -> None:
    text = "Line one\r\nLine two\r\n\r\n\r\n\r\nLine three <i>here</i>"
    assert sanitize_block(text) == "Line one\nLine two\n\nLine three here"


def test_block_keeps_punctuation() -> None:
    assert sanitize_block("Time: 10:30; please call") == "Time: 10:30; please call"


@pytest.mark.parametrize(
    "raw",
    [
        "Evil\r\nBcc: attacker@x.com",
        "Tom &amp; Jerry",
        "&lt;b&gt;bold&lt;/b&gt;",
        "a < b > c",
        "  lots   of    space  ",
        "<p>Hello <!-- hidden --> world</p>",
        "Fish & Chips; Co.",
    ],
)
def test_sanitize_line_is_idempotent(raw: str) -> None:
    once = sanitize_line(raw)
    assert sanitize_line(once) == once


@pytest.mark.parametrize(
    "raw",
    ["Hi\r\nthere & <b>you</b>", "&amp;lt;script&amp;gt;", "one\n\n\n\ntwo"],
)
def test_sanitize_block_is_idempotent(raw: str) -> None:
    once = sanitize_block(raw)
    assert sanitize_block(once) == once


def test_none_becomes_empty() -> None:
    assert sanitize_line(None) == ""
    assert sanitize_block(None) == ""


def test_mask_email() -> None:
    assert mask_email("john@example.com") == "jo***@example.com"
    assert mask_email(None) == "<none>"
    assert mask_email("nodomain") == "no***"


def test_deeply_escaped_markup_reaches_a_fixed_point() -> None:
    raw = "<b>Jane</b>"
    for _ in range(20):
        raw = html.escape(raw)

    once_line = sanitize_line(raw)
    once_block = sanitize_block(raw)

    assert once_line == "Jane"
    assert sanitize_line(once_line) == once_line
    assert once_block == "Jane"
    assert sanitize_block(once_block) == once_block
