# core/translation_engine.py
"""
Адаптер модели машинного перевода.

Модель загружается один раз при старте процесса в фоновом потоке,
HTTP сервер в это время уже отвечает. Состояния:
NOT_LOADED -> LOADING -> READY | LOAD_FAILED (терминальное, без повторов).
"""

import asyncio
import enum
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional

from core.errors import EngineLoadFailed, EngineNotReady, TranslationTimeout

logger = logging.getLogger(__name__)

# translate_fn(text, source_code, target_code) -> str
TranslateFn = Callable[[str, Optional[str], str], str]
Loader = Callable[[str, Path], TranslateFn]


class EngineState(str, enum.Enum):
    NOT_LOADED = 'not_loaded'
    LOADING = 'loading'
    READY = 'ready'
    LOAD_FAILED = 'load_failed'


def load_transformers_pipeline(model_name: str, cache_dir: Path) -> TranslateFn:
    """
    Загружает seq2seq модель Hugging Face и возвращает функцию перевода

    Веса сохраняются в cache_dir, повторный старт читает их с диска.

    Args:
        model_name: Имя модели на Hugging Face Hub (например NLLB-200)
        cache_dir: Каталог кэша весов

    Returns:
        TranslateFn: Блокирующая функция перевода одного текста
    """
    from transformers import AutoModelForSeq2SeqLM, AutoTokenizer, pipeline

    tokenizer = AutoTokenizer.from_pretrained(model_name, cache_dir=str(cache_dir))
    model = AutoModelForSeq2SeqLM.from_pretrained(model_name, cache_dir=str(cache_dir))
    translator = pipeline('translation', model=model, tokenizer=tokenizer)

    def translate_fn(text: str, source_code: Optional[str], target_code: str) -> str:
        kwargs = {'tgt_lang': target_code, 'max_length': 512}
        if source_code:
            kwargs['src_lang'] = source_code
        result = translator(text, **kwargs)
        return result[0]['translation_text']

    return translate_fn


class TranslationEngine:
    """Долгоживущий сервис перевода с проверкой готовности"""

    def __init__(self, model_name: str, cache_dir: Path, language_mapper,
                 default_source_lang: str = 'en', estimated_load_ms: int = 60000,
                 call_timeout: Optional[float] = 60, max_concurrent_calls: int = 1,
                 loader: Optional[Loader] = None):
        """
        Args:
            model_name: Имя модели
            cache_dir: Каталог кэша весов модели
            language_mapper: LanguageMapper для перевода тегов в коды модели
            default_source_lang: Исходный язык для страниц без lang
            estimated_load_ms: Статическая оценка длительности загрузки
            call_timeout: Таймаут одного вызова модели (None - без таймаута)
            max_concurrent_calls: Сколько вызовов модели выполняется одновременно
            loader: Фабрика функции перевода (для тестов подменяется)
        """
        self.model_name = model_name
        self.cache_dir = Path(cache_dir)
        self.language_mapper = language_mapper
        self.default_source_lang = default_source_lang
        self.estimated_load_ms = estimated_load_ms
        self.call_timeout = call_timeout
        self.loader = loader or load_transformers_pipeline

        self.state = EngineState.NOT_LOADED
        self.load_started_at: Optional[float] = None
        self.load_error: Optional[BaseException] = None

        self._translate_fn: Optional[TranslateFn] = None
        self._load_task: Optional[asyncio.Task] = None
        # Pipeline не реентерабелен: слот освобождается только когда поток
        # модели завершил работу, даже если вызов уже отменён по таймауту
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_concurrent_calls),
            thread_name_prefix="translation-engine"
        )

    @classmethod
    def from_config(cls, config, language_mapper, loader: Optional[Loader] = None) -> 'TranslationEngine':
        translation = config.get_translation_config()
        return cls(
            model_name=translation.get('model'),
            cache_dir=config.get_cache_dir(),
            language_mapper=language_mapper,
            default_source_lang=translation.get('default_source_lang', 'en'),
            estimated_load_ms=translation.get('estimated_load_ms', 60000),
            call_timeout=translation.get('call_timeout'),
            max_concurrent_calls=translation.get('max_concurrent_calls', 1),
            loader=loader,
        )

    def initialize(self) -> Optional[asyncio.Task]:
        """
        Запускает фоновую загрузку модели (только один раз)

        Returns:
            asyncio.Task: Задача загрузки (None если загрузка уже запускалась)
        """
        if self.state is not EngineState.NOT_LOADED:
            logger.debug(f"Engine initialize() ignored, state={self.state.value}")
            return None

        self.state = EngineState.LOADING
        self.load_started_at = time.monotonic()
        logger.info(f"⏳ Загрузка модели {self.model_name} (кэш: {self.cache_dir})")

        self._load_task = asyncio.get_running_loop().create_task(self._load())
        return self._load_task

    async def _load(self):
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._translate_fn = await asyncio.to_thread(self.loader, self.model_name, self.cache_dir)
        except Exception as e:
            self.state = EngineState.LOAD_FAILED
            self.load_error = e
            logger.error(f"❌ Error loading model {self.model_name}: {e}", exc_info=True)
            return

        self.state = EngineState.READY
        elapsed = time.monotonic() - self.load_started_at
        logger.info(f"✅ Model loaded successfully за {elapsed:.1f}s")

    async def wait_loaded(self):
        """Дожидается завершения загрузки (ошибки загрузки не пробрасываются)"""
        if self._load_task is not None:
            await asyncio.shield(self._load_task)

    async def shutdown(self):
        """Отменяет незавершённую загрузку и останавливает пул вызовов модели"""
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
            try:
                await self._load_task
            except asyncio.CancelledError:
                logger.info("🛑 Загрузка модели отменена")

        if self.state is EngineState.LOADING:
            self.state = EngineState.LOAD_FAILED
            self.load_error = EngineLoadFailed("Model loading was cancelled")

        self._executor.shutdown(wait=False, cancel_futures=True)

    def is_ready(self) -> bool:
        return self.state is EngineState.READY

    def estimated_seconds_remaining(self) -> float:
        """
        Грубая статическая оценка оставшегося времени загрузки.

        Это обратный отсчёт от estimated_load_ms, а не реальный прогресс загрузки.

        Returns:
            float: Секунды, не меньше нуля
        """
        if self.state in (EngineState.READY, EngineState.LOAD_FAILED):
            return 0.0
        if self.load_started_at is None:
            return self.estimated_load_ms / 1000

        elapsed_ms = (time.monotonic() - self.load_started_at) * 1000
        return max(0.0, self.estimated_load_ms - elapsed_ms) / 1000

    def ensure_ready(self):
        """
        Raises:
            EngineNotReady: Модель ещё загружается
            EngineLoadFailed: Загрузка модели завершилась ошибкой
        """
        if self.state is EngineState.READY:
            return
        if self.state is EngineState.LOAD_FAILED:
            raise EngineLoadFailed(f"Translator model failed to load: {self.load_error}")
        raise EngineNotReady("Translator model not loaded yet")

    async def translate(self, text: str, target_lang: str, source_lang_hint: Optional[str] = None) -> str:
        """
        Переводит один фрагмент текста

        Args:
            text: Исходный текст
            target_lang: Целевой язык (тег или код модели)
            source_lang_hint: Язык страницы, если известен

        Returns:
            str: Переведённый текст

        Raises:
            EngineNotReady, EngineLoadFailed, TranslationTimeout
        """
        self.ensure_ready()

        if not text or not text.strip():
            return text

        target_code = self.language_mapper.to_engine_code(target_lang)
        source_code = self.language_mapper.to_engine_code(source_lang_hint)
        if source_code is None:
            source_code = self.language_mapper.to_engine_code(self.default_source_lang)

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, self._translate_fn, text, source_code, target_code)
        try:
            return await asyncio.wait_for(future, timeout=self.call_timeout)
        except asyncio.TimeoutError:
            raise TranslationTimeout(
                f"Translation call timed out after {self.call_timeout}s"
            ) from None
