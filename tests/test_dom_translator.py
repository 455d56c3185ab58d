import pytest
from bs4 import BeautifulSoup

from core.proxy.dom_translator import DomTranslator, collect_text_nodes, get_page_lang

from conftest import FakeEngine

PAGE = (
    '<!DOCTYPE html><html lang="en"><head><title>Shop</title>'
    "<style>body { color: red; }</style></head>"
    "<body>Intro<div><p>Hello <b>world</b></p><!-- promo banner -->"
    "<script>var greeting = 'hi';</script>  \n  "
    "<span>  Padded  </span><noscript>Enable JS</noscript></div>"
    "<textarea>typed</textarea></body></html>"
)


def soup_of(html):
    return BeautifulSoup(html, "html.parser")


def test_get_page_lang():
    assert get_page_lang(soup_of(PAGE)) == "en"
    assert get_page_lang(soup_of("<html><body>x</body></html>")) is None
    assert get_page_lang(soup_of('<html lang=" "><body>x</body></html>')) is None
    assert get_page_lang(soup_of("<p>fragment</p>")) is None


def test_collect_text_nodes_in_document_order_under_body_only():
    nodes = collect_text_nodes(soup_of(PAGE))

    assert [str(node) for node in nodes] == ["Intro", "Hello ", "world", "  Padded  "]


def test_collect_text_nodes_without_body_returns_empty():
    assert collect_text_nodes(soup_of("<p>fragment</p>")) == []


async def test_translate_document_replaces_nodes_in_place():
    soup = soup_of(PAGE)
    before = [getattr(node, "name", None) or type(node).__name__ for node in soup.descendants]
    engine = FakeEngine()

    count = await DomTranslator(engine).translate_document(soup, "fr", "en")

    assert count == 4
    assert [call[0] for call in engine.calls] == ["Intro", "Hello", "world", "Padded"]
    assert all(call[1:] == ("fr", "en") for call in engine.calls)
    assert [str(node) for node in collect_text_nodes(soup)] == [
        "[fr] Intro", "[fr] Hello ", "[fr] world", "  [fr] Padded  "
    ]
    assert [getattr(node, "name", None) or type(node).__name__ for node in soup.descendants] == before

    html = str(soup)
    assert "<title>Shop</title>" in html
    assert "<!-- promo banner -->" in html
    assert "var greeting = 'hi';" in html
    assert "<textarea>typed</textarea>" in html
    assert "<b>[fr] world</b>" in html


async def test_translate_document_failure_aborts_by_default():
    soup = soup_of(PAGE)
    engine = FakeEngine(fail_on="world")

    with pytest.raises(RuntimeError, match="engine exploded"):
        await DomTranslator(engine).translate_document(soup, "fr")

    assert len(engine.calls) == 3


async def test_translate_document_can_skip_failed_nodes():
    soup = soup_of(PAGE)
    engine = FakeEngine(fail_on="world")

    count = await DomTranslator(engine, skip_failed_nodes=True).translate_document(soup, "fr")

    assert count == 3
    assert [str(node) for node in collect_text_nodes(soup)] == [
        "[fr] Intro", "[fr] Hello ", "world", "  [fr] Padded  "
    ]
