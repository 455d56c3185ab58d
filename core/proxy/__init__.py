# core/proxy/__init__.py
"""
Конвейер обработки одного /proxy запроса:
загрузка -> разбор -> перевод текста -> перезапись ссылок.
"""

from core.proxy.content_rewriter import ContentRewriter, build_proxy_url, parse_proxy_url
from core.proxy.dom_translator import DomTranslator, collect_text_nodes, get_page_lang
from core.proxy.fetcher import RemoteFetcher
from core.proxy.models import FetchedDocument, ProxiedRequest

__all__ = [
    'ContentRewriter',
    'DomTranslator',
    'FetchedDocument',
    'ProxiedRequest',
    'RemoteFetcher',
    'build_proxy_url',
    'collect_text_nodes',
    'get_page_lang',
    'parse_proxy_url',
]
