"""Tests for decoding Gmail payloads into email items."""

from __future__ import annotations

from helpers import b64url
from inbox_sorter.core.models import MimePart, RawMessage
from inbox_sorter.ingestion import (
    GmailMessageParser,
    decode_base64url,
    extract_text,
    strip_html,
)


def test_parser_decodes_plain_text_message() -> None:
    message = RawMessage(
        id="m1",
        snippet="Hello preview",
        payload=MimePart(
            mime_type="text/plain",
            body_data=b64url("Hello, world!"),
            headers=(
                ("Subject", "Hi"),
                ("From", "a@b"),
                ("Date", "Mon, 1 Jan 2024 00:00:00 +0000"),
            ),
        ),
    )

    item = GmailMessageParser().parse(message)

    assert item.id == "m1"
    assert item.sender == "a@b"
    assert item.subject == "Hi"
    assert item.date == "Mon, 1 Jan 2024 00:00:00 +0000"
    assert item.snippet == "Hello preview"
    assert item.body_text == "Hello, world!"


def test_headers_match_case_insensitively() -> None:
    message = RawMessage(
        id="m2",
        payload=MimePart(headers=(("SUBJECT", "Loud"), ("from", "quiet@example.com"))),
    )

    item = GmailMessageParser().parse(message)

    assert item.subject == "Loud"
    assert item.sender == "quiet@example.com"
    assert item.date is None
    assert item.body_text == ""


def test_nested_html_falls_back_to_stripped_text() -> None:
    payload = MimePart(
        mime_type="multipart/alternative",
        parts=(
            MimePart(
                mime_type="text/html",
                body_data=b64url("<p>Hi <b>there</b></p><script>x</script>"),
            ),
        ),
    )

    assert extract_text(payload) == "Hi there"


def test_extract_text_prefers_first_preorder_leaf() -> None:
    payload = MimePart(
        mime_type="multipart/mixed",
        parts=(
            MimePart(
                mime_type="multipart/alternative",
                parts=(
                    MimePart(mime_type="text/html", body_data=b64url("<i>first</i>")),
                    MimePart(mime_type="text/plain", body_data=b64url("second")),
                ),
            ),
            MimePart(mime_type="text/plain", body_data=b64url("third")),
        ),
    )

    assert extract_text(payload) == "first"


def test_extract_text_skips_empty_leaves_and_attachments() -> None:
    payload = MimePart(
        mime_type="multipart/mixed",
        parts=(
            MimePart(mime_type="text/plain", body_data=None),
            MimePart(mime_type="application/pdf", filename="a.pdf", body_data=b64url("%PDF")),
            MimePart(mime_type="text/plain; charset=utf-8", body_data=b64url("found")),
        ),
    )

    assert extract_text(payload) == "found"


def test_extract_text_returns_empty_without_text_leaves() -> None:
    payload = MimePart(
        mime_type="multipart/mixed",
        parts=(MimePart(mime_type="image/png", body_data=b64url("png")),),
    )

    assert extract_text(payload) == ""
    assert extract_text(None) == ""


def test_decode_base64url_handles_url_alphabet_and_padding() -> None:
    text = "ünïcødé ~~~ ???"

    assert decode_base64url(b64url(text)) == text


def test_decode_base64url_returns_empty_on_garbage() -> None:
    assert decode_base64url("!!!") == ""
    # Valid base64 that is not UTF-8.
    assert decode_base64url("_w") == ""


def test_strip_html_removes_script_and_style_content() -> None:
    html = """
    <html><head><STYLE type="text/css">body { color: red; }</STYLE></head>
    <body><script src="x.js">alert('hi')</script>
    <h1>Title</h1>   <p>Some&nbsp;text
    here</p></body></html>
    """

    result = strip_html(html)

    assert result == "Title Some&nbsp;text here"
    assert "alert" not in result
    assert "color" not in result


def test_strip_html_drops_blocks_without_padding() -> None:
    assert strip_html("Hello<script>x</script>World") == "HelloWorld"
    assert strip_html("a<style>p{}</style>b <i>c</i>") == "ab c"
