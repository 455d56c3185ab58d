# core/proxy/content_rewriter.py
"""Модуль для перезаписи ссылок в HTML через прокси"""

import re
import logging
from typing import Optional, Tuple
from urllib.parse import quote, urlsplit, parse_qs

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

PROXY_PATH = '/proxy'

# Элементы со ссылками на ресурсы и навигацию
LINK_SELECTOR = 'a[href], link[href], script[src], img[src], iframe[src], source[src], form[action]'

# Порядок выбора атрибута: на элементе переписывается только первый найденный
LINK_ATTRIBUTES = ('href', 'src', 'action')


def build_proxy_url(url: str, lang: str, proxy_path: str = PROXY_PATH) -> str:
    """
    Строит относительный URL прокси для абсолютного адреса

    Args:
        url: Абсолютный http(s) URL
        lang: Целевой язык

    Returns:
        str: /proxy?url=<url>&lang=<lang>
    """
    return f"{proxy_path}?url={quote(url, safe='')}&lang={quote(lang, safe='')}"


def parse_proxy_url(value: str, proxy_path: str = PROXY_PATH) -> Optional[Tuple[str, Optional[str]]]:
    """
    Обратная операция к build_proxy_url

    Returns:
        tuple или None: (исходный URL, язык) или None если это не URL прокси
    """
    if not value:
        return None

    parts = urlsplit(value)
    if parts.scheme or parts.netloc or parts.path != proxy_path:
        return None

    params = parse_qs(parts.query)
    urls = params.get('url')
    if not urls or not ContentRewriter.is_http_url(urls[0]):
        return None

    langs = params.get('lang')
    return urls[0], langs[0] if langs else None


class ContentRewriter:
    """Класс для перезаписи ссылок, чтобы переходы шли через прокси"""

    # Любая схема вида "mailto:", "javascript:", "data:"
    _SCHEME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.\-]*:')
    _HTTP_PATTERN = re.compile(r'^https?://', re.IGNORECASE)

    def __init__(self, proxy_path: str = PROXY_PATH):
        self.proxy_path = proxy_path

    @classmethod
    def is_http_url(cls, value: str) -> bool:
        return bool(cls._HTTP_PATTERN.match(value or ''))

    @staticmethod
    def get_origin(page_url: str) -> Tuple[str, str]:
        """Возвращает (scheme, origin) страницы, например ('https', 'https://example.com')"""
        parts = urlsplit(page_url)
        return parts.scheme, f"{parts.scheme}://{parts.netloc}"

    def resolve(self, link: str, page_url: str) -> Optional[str]:
        """
        Приводит ссылку к абсолютному http(s) URL относительно origin страницы

        Относительные пути присоединяются к origin, а не к текущему пути
        ('x' -> origin + '/x').

        Args:
            link: Значение атрибута
            page_url: URL загруженной страницы

        Returns:
            str или None: Абсолютный URL или None если ссылку переписывать не нужно
        """
        link = link.strip()
        if not link:
            return None

        if self.is_http_url(link):
            return link

        scheme, origin = self.get_origin(page_url)

        if link.startswith('//'):
            return f"{scheme}:{link}"

        # mailto:, javascript:, data: и т.п. не трогаем
        if self._SCHEME_PATTERN.match(link):
            return None

        return origin + (link if link.startswith('/') else '/' + link)

    def rewrite(self, soup: BeautifulSoup, page_url: str, target_lang: str) -> int:
        """
        Переписывает href/src/action в документе и переключает формы на POST

        Args:
            soup: Разобранный документ (изменяется)
            page_url: URL загруженной страницы
            target_lang: Целевой язык, передаётся дальше в ссылках

        Returns:
            int: Количество переписанных ссылок
        """
        rewritten = 0
        # Элементы, уже переписанные в этом документе. Собственные ссылки
        # сайта вида /proxy?url=... переписываются как обычные относительные
        proxied = vars(soup).setdefault('_proxied_elements', set())

        for element in soup.select(LINK_SELECTOR):
            if id(element) in proxied:
                continue

            attr = next((name for name in LINK_ATTRIBUTES if element.get(name)), None)
            if attr is None:
                continue

            value = element.get(attr)
            absolute = self.resolve(value, page_url)
            if absolute is None:
                continue

            element[attr] = build_proxy_url(absolute, target_lang, self.proxy_path)
            proxied.add(id(element))
            rewritten += 1

        # Прокси принимает формы единым обработчиком
        for form in soup.find_all('form'):
            form['method'] = 'POST'

        logger.debug(f"🔗 Переписано ссылок: {rewritten}")
        return rewritten
