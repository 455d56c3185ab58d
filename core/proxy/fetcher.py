# core/proxy/fetcher.py
"""Загрузка целевых страниц с удалённых сайтов"""

import asyncio
import logging

from aiohttp import ClientSession, TCPConnector, ClientTimeout, ClientError

from core.errors import UpstreamFetchError, UpstreamTimeout
from core.proxy.models import FetchedDocument, ProxiedRequest

logger = logging.getLogger(__name__)

# Заголовки, которые не передаются клиенту при прямом проксировании
HOP_BY_HOP_HEADERS = {
    'content-encoding', 'transfer-encoding', 'connection', 'keep-alive', 'content-length'
}


class RemoteFetcher:
    def __init__(self, user_agent: str = 'Mozilla/5.0', timeout: float = 30, connect_timeout: float = 10):
        """
        Args:
            user_agent: Фиксированный User-Agent (имитируем браузер)
            timeout: Общий таймаут запроса, сек
            connect_timeout: Таймаут установки соединения, сек
        """
        self.user_agent = user_agent
        self.timeout = timeout
        self.connect_timeout = connect_timeout

        # Connection pool для переиспользования соединений
        self.connector = None
        self.session = None

    @classmethod
    def from_config(cls, config) -> 'RemoteFetcher':
        return cls(
            user_agent=config.get('fetch.user_agent', 'Mozilla/5.0'),
            timeout=config.get('fetch.timeout', 30),
            connect_timeout=config.get('fetch.connect_timeout', 10),
        )

    async def initialize(self):
        """Инициализация connection pool"""
        if self.connector is None:
            self.connector = TCPConnector(
                limit=100,  # Максимум 100 одновременных соединений
                limit_per_host=20,
                ttl_dns_cache=300,  # DNS кэш на 5 минут
                enable_cleanup_closed=True
            )

        if self.session is None:
            self.session = ClientSession(
                connector=self.connector,
                timeout=ClientTimeout(total=self.timeout, connect=self.connect_timeout)
            )

    async def cleanup(self):
        """Очистка ресурсов"""
        if self.session:
            await self.session.close()
            self.session = None
        if self.connector:
            await self.connector.close()
            self.connector = None

    async def fetch(self, proxied_request: ProxiedRequest) -> FetchedDocument:
        """
        Загружает страницу тем же методом и с тем же телом, что и входящий запрос

        Args:
            proxied_request: Параметры проксируемого запроса

        Returns:
            FetchedDocument: Статус, тип контента и тело ответа

        Raises:
            UpstreamTimeout: Сайт не ответил вовремя
            UpstreamFetchError: Сетевая ошибка (DNS, соединение и т.д.)
        """
        await self.initialize()

        headers = {'User-Agent': self.user_agent}
        if proxied_request.body and proxied_request.content_type:
            headers['Content-Type'] = proxied_request.content_type

        logger.debug(f"🌐 {proxied_request.method} {proxied_request.target_url}")

        try:
            async with self.session.request(
                method=proxied_request.method,
                url=proxied_request.target_url,
                headers=headers,
                data=proxied_request.body,
            ) as upstream_response:
                body = await upstream_response.read()

                # Без заголовка Content-Type контент считается не-HTML
                content_type = upstream_response.headers.get('Content-Type', '')
                response_headers = {
                    key: value for key, value in upstream_response.headers.items()
                    if key.lower() not in HOP_BY_HOP_HEADERS
                }

                logger.debug(
                    f"Upstream response: {upstream_response.status} "
                    f"{content_type or '<no content-type>'} ({len(body)} bytes)"
                )

                return FetchedDocument(
                    url=str(upstream_response.url),
                    status=upstream_response.status,
                    content_type=content_type,
                    body=body,
                    charset=upstream_response.charset,
                    headers=response_headers,
                )

        except asyncio.TimeoutError as e:
            logger.error(f"❌ Таймаут запроса к {proxied_request.target_url}")
            raise UpstreamTimeout(
                f"Upstream {proxied_request.target_url} did not respond within {self.timeout}s"
            ) from e

        except ClientError as e:
            logger.error(f"❌ Ошибка загрузки {proxied_request.target_url}: {e}")
            raise UpstreamFetchError(f"Failed to fetch {proxied_request.target_url}: {e}") from e
