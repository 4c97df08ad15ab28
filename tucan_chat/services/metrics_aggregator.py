"""
Agregação diária das tags em contadores por (data, categoria, item)
"""
from datetime import date
from loguru import logger

from ..models import MessageTags


class MetricsAggregator:
    """Converte tags de uma mensagem em incrementos de chat_metrics_daily"""

    def __init__(self, store):
        self.store = store

    def record(self, day: date, tags: MessageTags) -> int:
        """
        Um incremento por rótulo não nulo.

        Deve ser chamado apenas depois que as tags da mensagem foram
        gravadas pela primeira vez; é isso que evita contagem dupla.

        Returns:
            Número de incrementos aplicados com sucesso
        """
        applied = 0
        for category, label in tags.labels():
            if not label:
                continue
            if self.store.increment_daily_metric(day, category, label):
                applied += 1
            else:
                logger.warning(f"⚠️ Métrica não incrementada: {day} {category}={label}")
        return applied
