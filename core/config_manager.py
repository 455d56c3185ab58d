import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


# Короткие теги -> коды NLLB-200 (язык_письменность).
# Покрытие ограничено этой таблицей, остальные теги передаются модели как есть.
DEFAULT_ENGINE_CODES = {
    'en': 'eng_Latn',
    'fr': 'fra_Latn',
    'de': 'deu_Latn',
    'es': 'spa_Latn',
    'it': 'ita_Latn',
    'pt': 'por_Latn',
    'nl': 'nld_Latn',
    'pl': 'pol_Latn',
    'cs': 'ces_Latn',
    'ro': 'ron_Latn',
    'sv': 'swe_Latn',
    'da': 'dan_Latn',
    'fi': 'fin_Latn',
    'no': 'nob_Latn',
    'tr': 'tur_Latn',
    'id': 'ind_Latn',
    'vi': 'vie_Latn',
    'ms': 'zsm_Latn',
    'ru': 'rus_Cyrl',
    'uk': 'ukr_Cyrl',
    'el': 'ell_Grek',
    'ar': 'arb_Arab',
    'hi': 'hin_Deva',
    'th': 'tha_Thai',
    'ja': 'jpn_Jpan',
    'ko': 'kor_Hang',
    'zh': 'zho_Hans',
    'zh-cn': 'zho_Hans',
    'zh-hans': 'zho_Hans',
    'zh-tw': 'zho_Hant',
    'zh-hant': 'zho_Hant',
}


def get_app_data_dir():
    """Возвращает путь для хранения данных приложения (конфиг, логи)"""
    custom_dir = os.getenv('TRANSLATION_PROXY_HOME')
    if custom_dir:
        app_data_dir = Path(custom_dir)
    else:
        # Dev режим
        app_data_dir = Path(__file__).parent.parent / 'app_data'

    app_data_dir.mkdir(parents=True, exist_ok=True)
    return app_data_dir


class ConfigManager:
    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Путь к config.json (по умолчанию в app data)
        """
        self.config_path = Path(config_path) if config_path else self._get_config_path()
        self.config = self._load_config()

    def _get_config_path(self) -> Path:
        """Возвращает путь к файлу конфигурации"""
        config_dir = get_app_data_dir()

        config_dir.mkdir(parents=True, exist_ok=True)
        return config_dir / 'config.json'

    def _get_default_config(self) -> dict:
        """Возвращает конфигурацию по умолчанию"""
        return {
            'server': {
                'host': '0.0.0.0',
                'port': 3000,
            },

            'translation': {
                'model': 'facebook/nllb-200-distilled-600M',
                'cache_dir': './.cache',
                'default_target_lang': 'fr',
                'default_source_lang': 'en',
                'translate_undetermined': True,
                'estimated_load_ms': 60000,  # Грубая оценка времени загрузки модели
                'call_timeout': 60,  # Таймаут одного вызова модели, сек
                'max_concurrent_calls': 1,
                'skip_failed_nodes': False,
            },

            'fetch': {
                'user_agent': 'Mozilla/5.0',
                'timeout': 30,  # Таймаут запроса к целевому сайту, сек
                'connect_timeout': 10,
            },

            'languages': {
                'compound_codes': True,
                'engine_codes': dict(DEFAULT_ENGINE_CODES),
            },
        }

    def _load_config(self) -> Dict[str, Any]:
        """Загружает конфигурацию из файла и применяет переменные окружения"""
        config = self._get_default_config()

        try:
            if self.config_path.exists():
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    loaded_config = json.load(f)
                    # Объединяем с дефолтными значениями
                    config = self._deep_merge(config, loaded_config)
        except (OSError, ValueError) as e:
            logger.error(f"Ошибка загрузки конфига {self.config_path}: {e}")

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """PORT и CACHE_DIR из окружения имеют приоритет над файлом"""
        port = os.getenv('PORT')
        if port:
            try:
                config['server']['port'] = int(port)
            except ValueError:
                logger.warning(f"⚠️ Некорректное значение PORT={port!r}, используется {config['server']['port']}")

        cache_dir = os.getenv('CACHE_DIR')
        if cache_dir:
            config['translation']['cache_dir'] = cache_dir

        return config

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
        """Рекурсивное объединение словарей"""
        result = base.copy()

        for key, value in update.items():
            if (key in result and
                    isinstance(result[key], dict) and
                    isinstance(value, dict)):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def save(self) -> bool:
        """Сохраняет конфигурацию в файл"""
        try:
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self.config, f, indent=2, ensure_ascii=False)
            logger.info("Конфигурация сохранена")
            return True
        except OSError as e:
            logger.error(f"Ошибка сохранения конфига: {e}")
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Получает значение по ключу (dot notation)"""
        value = self.config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any, save: bool = False) -> bool:
        """Устанавливает значение по ключу (dot notation)"""
        keys = key.split('.')
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref or not isinstance(config_ref[k], dict):
                config_ref[k] = {}
            config_ref = config_ref[k]

        config_ref[keys[-1]] = value

        if save:
            return self.save()
        return True

    def get_server_config(self) -> Dict[str, Any]:
        """Возвращает настройки HTTP сервера"""
        return self.get('server', {})

    def get_translation_config(self) -> Dict[str, Any]:
        """Возвращает настройки модели перевода"""
        return self.get('translation', {})

    def get_cache_dir(self) -> Path:
        """
        Каталог кэша весов модели (создаётся при отсутствии)

        Returns:
            Path: Абсолютный путь к каталогу
        """
        cache_dir = Path(self.get('translation.cache_dir', './.cache')).expanduser().resolve()
        cache_dir.mkdir(parents=True, exist_ok=True)
        return cache_dir


# Синглтон для глобального доступа
_config_instance = None


def get_config() -> ConfigManager:
    """Возвращает глобальный экземпляр ConfigManager"""
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigManager()
    return _config_instance
