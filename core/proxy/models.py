# core/proxy/models.py
"""Модели данных одного проксируемого запроса"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from yarl import URL

from core.errors import MalformedInput


@dataclass
class ProxiedRequest:
    method: str
    target_url: str
    target_lang: str
    body: Optional[bytes] = None
    content_type: Optional[str] = None

    @classmethod
    def build(cls, method: str, raw_url: Optional[str], lang: Optional[str], default_lang: str,
              body: Optional[bytes] = None, content_type: Optional[str] = None) -> 'ProxiedRequest':
        """
        Проверяет параметры запроса и создаёт ProxiedRequest

        Args:
            method: HTTP метод входящего запроса
            raw_url: Значение параметра url
            lang: Значение параметра lang (может отсутствовать)
            default_lang: Язык по умолчанию из конфигурации
            body: Тело входящего запроса
            content_type: Content-Type входящего запроса

        Raises:
            MalformedInput: url отсутствует или не является абсолютным http(s) URL
        """
        if not raw_url or not raw_url.strip():
            raise MalformedInput("No URL provided")

        raw_url = raw_url.strip()
        try:
            url = URL(raw_url)
        except (ValueError, TypeError) as e:
            raise MalformedInput(f"Invalid URL: {raw_url}") from e

        if not url.is_absolute() or url.scheme not in ('http', 'https') or not url.host:
            raise MalformedInput(f"URL must be absolute http(s): {raw_url}")

        target_lang = (lang or '').strip() or default_lang

        return cls(
            method=method.upper(),
            target_url=raw_url,
            target_lang=target_lang,
            body=body or None,
            content_type=content_type if body else None,
        )


@dataclass
class FetchedDocument:
    url: str
    status: int
    content_type: str
    body: bytes
    charset: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_html(self) -> bool:
        return 'text/html' in (self.content_type or '').lower()
