import pytest

from core.errors import MalformedInput
from core.proxy.models import FetchedDocument, ProxiedRequest


def test_build_applies_default_language_and_uppercases_method():
    request = ProxiedRequest.build("get", "https://example.com/item", None, "fr")

    assert request.method == "GET"
    assert request.target_url == "https://example.com/item"
    assert request.target_lang == "fr"
    assert request.body is None
    assert request.content_type is None


def test_build_keeps_body_and_content_type_for_forms():
    request = ProxiedRequest.build(
        "POST", " https://example.com/search ", "de", "fr",
        body=b"q=shoes", content_type="application/x-www-form-urlencoded",
    )

    assert request.target_url == "https://example.com/search"
    assert request.target_lang == "de"
    assert request.body == b"q=shoes"
    assert request.content_type == "application/x-www-form-urlencoded"


def test_build_drops_content_type_without_body():
    request = ProxiedRequest.build("GET", "http://example.com", "  ", "fr", body=b"", content_type="text/plain")

    assert request.body is None
    assert request.content_type is None
    assert request.target_lang == "fr"


@pytest.mark.parametrize("raw_url", [None, "", "   ", "example.com/page", "/relative", "ftp://example.com/file", "http://"])
def test_build_rejects_missing_or_non_absolute_urls(raw_url):
    with pytest.raises(MalformedInput) as exc_info:
        ProxiedRequest.build("GET", raw_url, "fr", "fr")

    assert exc_info.value.status == 400


def test_fetched_document_html_classification():
    def doc(content_type):
        return FetchedDocument(url="https://example.com", status=200, content_type=content_type, body=b"")

    assert doc("text/html; charset=utf-8").is_html
    assert doc("TEXT/HTML").is_html
    assert not doc("image/png").is_html
    assert not doc("application/json").is_html
    assert not doc("").is_html
    assert not doc(None).is_html
