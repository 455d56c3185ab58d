# core/proxy/dom_translator.py
"""Обход текстовых узлов документа и их перевод на месте"""

import logging
from typing import List, Optional

from bs4 import BeautifulSoup, NavigableString

logger = logging.getLogger(__name__)

# Содержимое этих элементов не является видимым текстом
SKIPPED_PARENTS = {'script', 'style', 'noscript', 'template', 'textarea'}


def get_page_lang(soup: BeautifulSoup) -> Optional[str]:
    """Атрибут lang корневого <html> (None если отсутствует)"""
    html = soup.find('html')
    if html is None:
        return None
    lang = html.get('lang')
    return lang.strip() if lang and lang.strip() else None


def collect_text_nodes(soup: BeautifulSoup) -> List[NavigableString]:
    """
    Собирает переводимые текстовые узлы внутри <body> в порядке документа

    Учитываются только "чистые" NavigableString: комментарии, doctype, CDATA
    пропускаются, как и текст внутри script/style.

    Args:
        soup: Разобранный документ

    Returns:
        list: Ссылки на узлы с непустым текстом после strip()
    """
    body = soup.body
    if body is None:
        return []

    nodes = []
    for node in body.descendants:
        if type(node) is not NavigableString:
            continue
        if not node.strip():
            continue
        if any(parent.name in SKIPPED_PARENTS for parent in node.parents):
            continue
        nodes.append(node)
    return nodes


class DomTranslator:
    """Переводит текстовые узлы по одному, последовательно"""

    def __init__(self, engine, skip_failed_nodes: bool = False):
        """
        Args:
            engine: TranslationEngine
            skip_failed_nodes: Оставлять исходный текст узла при ошибке перевода
                вместо прерывания всего запроса
        """
        self.engine = engine
        self.skip_failed_nodes = skip_failed_nodes

    async def translate_document(self, soup: BeautifulSoup, target_lang: str,
                                 source_lang: Optional[str] = None) -> int:
        """
        Переводит документ на месте.

        Сначала собираются ссылки на узлы, затем каждый узел заменяется
        переводом: структура и порядок узлов не меняются. Пробелы по краям
        узла сохраняются.

        Args:
            soup: Разобранный документ (изменяется)
            target_lang: Целевой язык
            source_lang: Язык страницы, если объявлен

        Returns:
            int: Количество переведённых узлов
        """
        nodes = collect_text_nodes(soup)
        logger.debug(f"📝 Найдено {len(nodes)} текстовых узлов для перевода")

        translated_count = 0
        for node in nodes:
            text = str(node)
            core = text.strip()
            lead = text[:len(text) - len(text.lstrip())]
            trail = text[len(text.rstrip()):]

            try:
                translated = await self.engine.translate(core, target_lang, source_lang)
            except Exception as e:
                if not self.skip_failed_nodes:
                    raise
                logger.warning(f"⚠️ Узел пропущен, ошибка перевода: {e}")
                continue

            node.replace_with(NavigableString(f"{lead}{translated}{trail}"))
            translated_count += 1

        return translated_count
