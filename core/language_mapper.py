# core/language_mapper.py
"""Сопоставление языковых тегов страницы с кодами модели перевода"""

import logging
import re
from typing import Dict, Optional

logger = logging.getLogger(__name__)

UNDETERMINED = 'und'

_SUBTAG_SEPARATOR = re.compile(r'[-_]')


def primary_subtag(tag: Optional[str]) -> str:
    """
    Основной языковой подтег: 'en-US' -> 'en', 'fra_Latn' -> 'fra'

    Args:
        tag: Языковой тег в любом регистре

    Returns:
        str: Подтег в нижнем регистре ('' для пустого тега)
    """
    if not tag:
        return ''
    return _SUBTAG_SEPARATOR.split(tag.strip(), maxsplit=1)[0].lower()


class LanguageMapper:
    """
    Нормализует теги (lang страницы, ISO коды) в схему кодов модели
    и решает, нужен ли перевод.

    Проверка намеренно разрешительная: лишний вызов модели дешевле
    пропущенного перевода.
    """

    def __init__(self, engine_codes: Dict[str, str], compound_codes: bool = True,
                 translate_undetermined: bool = True):
        """
        Args:
            engine_codes: Таблица тег -> код модели (например 'fr' -> 'fra_Latn')
            compound_codes: Коды модели составные (язык + письменность)
            translate_undetermined: Переводить страницы без атрибута lang
        """
        self.engine_codes = {key.lower(): value for key, value in engine_codes.items()}
        self.compound_codes = compound_codes
        self.translate_undetermined = translate_undetermined

    @classmethod
    def from_config(cls, config) -> 'LanguageMapper':
        return cls(
            engine_codes=config.get('languages.engine_codes', {}),
            compound_codes=config.get('languages.compound_codes', True),
            translate_undetermined=config.get('translation.translate_undetermined', True),
        )

    @staticmethod
    def is_undetermined(tag: Optional[str]) -> bool:
        return not tag or not tag.strip() or primary_subtag(tag) == UNDETERMINED

    def to_engine_code(self, tag: Optional[str]) -> Optional[str]:
        """
        Переводит тег в код модели через таблицу.

        Сначала ищется тег целиком ('zh-tw'), затем основной подтег ('en-GB' -> 'en').
        Неизвестные теги возвращаются без изменений.

        Args:
            tag: Языковой тег

        Returns:
            str или None: Код модели, None для неопределённого языка
        """
        if self.is_undetermined(tag):
            return None

        tag = tag.strip()
        code = self.engine_codes.get(tag.lower())
        if code is None:
            code = self.engine_codes.get(primary_subtag(tag))
        return code if code is not None else tag

    def needs_translation(self, page_lang: Optional[str], target_lang: Optional[str]) -> bool:
        """
        Нужен ли перевод страницы с языком page_lang на target_lang

        Args:
            page_lang: Атрибут lang корневого элемента (может отсутствовать)
            target_lang: Целевой язык из запроса

        Returns:
            bool: True если страницу нужно переводить
        """
        if self.is_undetermined(target_lang):
            return False

        if self.is_undetermined(page_lang):
            return self.translate_undetermined

        if self.compound_codes:
            source = primary_subtag(self.to_engine_code(page_lang))
            target = primary_subtag(self.to_engine_code(target_lang))
        else:
            source = primary_subtag(page_lang)
            target = primary_subtag(target_lang)

        return source != target
