# proxy_manager.py
import asyncio
import logging
import signal

from aiohttp import web
from bs4 import BeautifulSoup

from core.config_manager import get_config
from core.errors import ProxyError
from core.frontend import render_index
from core.language_mapper import LanguageMapper
from core.proxy.content_rewriter import ContentRewriter, PROXY_PATH
from core.proxy.dom_translator import DomTranslator, get_page_lang
from core.proxy.fetcher import RemoteFetcher
from core.proxy.models import ProxiedRequest
from core.status_reporter import StatusReporter
from core.translation_engine import TranslationEngine
from utils.port_utils import check_port_availability, get_process_using_port

logger = logging.getLogger(__name__)


class TranslationProxy:
    def __init__(self, engine, language_mapper, fetcher, default_lang='fr', skip_failed_nodes=False):
        """
        Args:
            engine: TranslationEngine (один на процесс)
            language_mapper: LanguageMapper
            fetcher: RemoteFetcher
            default_lang: Целевой язык, если lang не передан
            skip_failed_nodes: Не прерывать страницу при ошибке перевода узла
        """
        self.engine = engine
        self.language_mapper = language_mapper
        self.fetcher = fetcher
        self.default_lang = default_lang

        self.dom_translator = DomTranslator(engine, skip_failed_nodes=skip_failed_nodes)
        self.rewriter = ContentRewriter(PROXY_PATH)
        self.status_reporter = StatusReporter(engine)

        # Статистика
        self.stats = {
            'total_requests': 0,
            'translated_pages': 0,
            'translated_nodes': 0,
            'passthrough': 0,
            'active_requests': 0,
            'errors': 0
        }

    async def on_startup(self, app):
        """Запуск загрузки модели вместе с сервером (не блокирует старт)"""
        self.engine.initialize()
        await self.fetcher.initialize()

    async def on_cleanup(self, app):
        """Очистка ресурсов"""
        await self.fetcher.cleanup()
        await self.engine.shutdown()

    async def handle_index(self, request):
        return web.Response(text=render_index(self.default_lang), content_type='text/html')

    async def handle_status(self, request):
        return web.json_response(self.status_reporter.snapshot())

    async def handle_ping(self, request):
        return web.Response(text='pong')

    async def handle_proxy(self, request):
        """Обработка /proxy?url=...&lang=..."""
        self.stats['total_requests'] += 1
        self.stats['active_requests'] += 1

        try:
            return await self._proxy_request(request)

        except ProxyError as e:
            self.stats['errors'] += 1
            logger.warning(f"⚠️ {type(e).__name__} ({e.status}): {e.message}")
            return web.Response(text=e.message, status=e.status)

        except Exception as e:
            self.stats['errors'] += 1
            logger.error(f"❌ Error proxying {request.path_qs}: {e}", exc_info=True)
            return web.Response(text=f"Error proxying: {e}", status=500)

        finally:
            self.stats['active_requests'] -= 1

    async def _proxy_request(self, request):
        body = await request.read() if request.can_read_body else None

        proxied_request = ProxiedRequest.build(
            method=request.method,
            raw_url=request.query.get('url'),
            lang=request.query.get('lang'),
            default_lang=self.default_lang,
            body=body,
            content_type=request.headers.get('Content-Type'),
        )

        # Пока модель не загружена, запросы не ставятся в очередь
        self.engine.ensure_ready()

        document = await self.fetcher.fetch(proxied_request)

        if not document.is_html:
            # Не-HTML (картинки, JS, CSS): отдаём как есть
            self.stats['passthrough'] += 1
            return web.Response(body=document.body, status=document.status, headers=document.headers)

        html = await self.transform_html(document, proxied_request.target_lang)
        return web.Response(text=html, content_type='text/html', charset='utf-8')

    async def transform_html(self, document, target_lang):
        """
        Разбор, перевод и перезапись ссылок HTML документа

        Args:
            document: FetchedDocument с HTML
            target_lang: Целевой язык

        Returns:
            str: Сериализованный документ
        """
        # Байты: BeautifulSoup сам найдёт кодировку, в том числе в <meta charset>
        soup = BeautifulSoup(document.body, 'html.parser', from_encoding=document.charset)
        page_lang = get_page_lang(soup)

        if self.language_mapper.needs_translation(page_lang, target_lang):
            nodes = await self.dom_translator.translate_document(soup, target_lang, page_lang)
            self.stats['translated_pages'] += 1
            self.stats['translated_nodes'] += nodes
            logger.info(f"🌍 {document.url}: {page_lang or 'und'} → {target_lang}, узлов: {nodes}")
        else:
            logger.info(f"⏭️ {document.url}: язык страницы {page_lang} совпадает с {target_lang}, перевод пропущен")

        self.rewriter.rewrite(soup, document.url, target_lang)
        return str(soup)

    def get_full_stats(self):
        """Получить статистику прокси"""
        return dict(self.stats)


class ProxyManager:
    def __init__(self, config=None, engine_loader=None):
        """
        Args:
            config: ConfigManager (по умолчанию глобальный)
            engine_loader: Фабрика функции перевода для TranslationEngine
        """
        self.config = config or get_config()
        self.engine_loader = engine_loader
        self.is_running = False
        self.proxy = None
        self.runner = None
        self.site = None
        self.loop = None

        server_config = self.config.get_server_config()
        self.host = server_config.get('host', '0.0.0.0')
        self.port = int(server_config.get('port', 3000))

        # Error tracking
        self.last_error_type = None  # 'port', 'server'
        self.last_error_details = None

    def create_proxy(self) -> TranslationProxy:
        """Собирает сервисы прокси из конфигурации"""
        language_mapper = LanguageMapper.from_config(self.config)
        engine = TranslationEngine.from_config(self.config, language_mapper, loader=self.engine_loader)
        fetcher = RemoteFetcher.from_config(self.config)

        return TranslationProxy(
            engine=engine,
            language_mapper=language_mapper,
            fetcher=fetcher,
            default_lang=self.config.get('translation.default_target_lang', 'fr'),
            skip_failed_nodes=self.config.get('translation.skip_failed_nodes', False),
        )

    def build_app(self) -> web.Application:
        """Создаёт aiohttp приложение с маршрутами"""
        if self.proxy is None:
            self.proxy = self.create_proxy()

        app = web.Application()
        app.router.add_get('/', self.proxy.handle_index)
        app.router.add_get('/status', self.proxy.handle_status)
        app.router.add_get('/ping', self.proxy.handle_ping)
        app.router.add_route('*', PROXY_PATH, self.proxy.handle_proxy)

        app.on_startup.append(self.proxy.on_startup)
        app.on_cleanup.append(self.proxy.on_cleanup)
        return app

    def start(self):
        """
        Запуск сервера в текущем потоке (блокирует до остановки)

        Returns:
            bool: False если сервер не удалось запустить
        """
        if self.is_running:
            logger.warning("⚠️ Сервер уже запущен")
            return False

        port_available, port_message = check_port_availability(self.port, self.host)
        if not port_available:
            logger.error(f"❌ {port_message}")

            process_info = get_process_using_port(self.port)
            if process_info:
                logger.info(
                    f"📌 Процесс на порту {self.port}:\n"
                    f"   PID: {process_info.get('pid')}\n"
                    f"   Name: {process_info.get('name')}\n"
                    f"   User: {process_info.get('username', 'N/A')}"
                )

            self.last_error_type = 'port'
            self.last_error_details = port_message
            return False

        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)

        try:
            self.loop.run_until_complete(self._start_server())
            if not self.is_running:
                return False

            for sig in (signal.SIGINT, signal.SIGTERM):
                try:
                    self.loop.add_signal_handler(sig, self.stop)
                except (NotImplementedError, RuntimeError):
                    # Windows: остановка через KeyboardInterrupt
                    pass

            self.loop.run_forever()

        except KeyboardInterrupt:
            logger.info("🛑 Получен сигнал остановки")

        finally:
            self.loop.run_until_complete(self._stop_server())
            self.loop.close()
            self.loop = None

        return True

    async def _start_server(self):
        """Асинхронный запуск сервера"""
        try:
            app = self.build_app()

            # handler_cancellation: запрос отменяется, если клиент отключился
            self.runner = web.AppRunner(app, access_log=None, handler_cancellation=True)
            await self.runner.setup()

            self.site = web.TCPSite(self.runner, host=self.host, port=self.port)
            await self.site.start()

            self.is_running = True
            logger.info(f"✅ Server on http://{self.host}:{self.port}")

        except OSError as e:
            logger.error(f"❌ Ошибка запуска сервера: {e}")
            self.last_error_type = 'server'
            self.last_error_details = str(e)
            self.is_running = False

    def stop(self):
        """Остановка сервера (можно вызывать из обработчика сигнала)"""
        if not self.is_running:
            logger.warning("⚠️ Сервер не запущен")
            return

        logger.info("🛑 Stopping server...")
        self.is_running = False

        if self.loop and self.loop.is_running():
            self.loop.call_soon_threadsafe(self.loop.stop)

    async def _stop_server(self):
        """Асинхронная остановка сервера"""
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            self.site = None

        # Логируем статистику
        if self.proxy:
            stats = self.proxy.get_full_stats()
            logger.info(
                f"📊 Session statistics:\n"
                f"   Total requests: {stats['total_requests']}\n"
                f"   Translated pages: {stats['translated_pages']}\n"
                f"   Translated nodes: {stats['translated_nodes']}\n"
                f"   Passthrough: {stats['passthrough']}\n"
                f"   Errors: {stats['errors']}"
            )

        logger.info("✅ Server stopped")

    def get_status(self):
        """Возвращает статус сервера"""
        status = {
            'running': self.is_running,
            'host': self.host,
            'port': self.port,
        }

        if self.last_error_type:
            status['error_type'] = self.last_error_type
            status['error_details'] = self.last_error_details

        if self.proxy:
            status['engine'] = self.proxy.status_reporter.snapshot()
            status['proxy_stats'] = self.proxy.get_full_stats()

        return status
