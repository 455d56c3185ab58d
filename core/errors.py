# core/errors.py
"""Иерархия ошибок прокси-переводчика"""


class ProxyError(Exception):
    """Базовая ошибка обработки /proxy запроса"""

    status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MalformedInput(ProxyError):
    """Отсутствует или некорректен параметр url"""

    status = 400


class EngineNotReady(ProxyError):
    """Модель перевода ещё загружается"""

    status = 503


class EngineLoadFailed(ProxyError):
    """Загрузка модели завершилась ошибкой (до перезапуска процесса)"""

    status = 500


EngineUnavailable = EngineLoadFailed


class UpstreamFetchError(ProxyError):
    """Сетевая ошибка при загрузке целевой страницы"""

    status = 500


class ProxyTimeout(ProxyError):
    status = 504


class UpstreamTimeout(ProxyTimeout, UpstreamFetchError):
    """Целевой сайт не ответил за отведённое время"""

    status = 504


class TranslationTimeout(ProxyTimeout):
    """Вызов модели перевода превысил таймаут"""
