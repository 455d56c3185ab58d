# core/status_reporter.py

import logging

logger = logging.getLogger(__name__)


class StatusReporter:
    """
    Состояние готовности модели для опроса с фронтенда (GET /status).

    remaining - статический обратный отсчёт, не связанный с реальным
    прогрессом загрузки.
    """

    def __init__(self, engine):
        self.engine = engine

    def snapshot(self) -> dict:
        return {
            'ready': self.engine.is_ready(),
            'remaining': round(self.engine.estimated_seconds_remaining(), 1),
            'state': self.engine.state.value,
        }
