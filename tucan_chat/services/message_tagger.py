"""
Job offline: classifica mensagens de usuário ainda sem tags e alimenta métricas
"""
from typing import Optional
from loguru import logger

from ..models import TaggingReport
from ..orchestrator.message_classifier import classify_message
from .env import env_int
from .metrics_aggregator import MetricsAggregator


DEFAULT_BATCH_LIMIT = 500


class MessageTagger:
    """
    Processa um lote limitado de mensagens, uma por vez:
    grava tags (insert-ignore) e só então incrementa as métricas.
    """

    def __init__(self, store, aggregator: Optional[MetricsAggregator] = None):
        self.store = store
        self.aggregator = aggregator or MetricsAggregator(store)

    def tag_message(self, message_id: int, text: str, day) -> int:
        """
        Classifica e grava uma mensagem.

        Returns:
            Incrementos aplicados, ou -1 se a tag já existia (ou falhou)
        """
        tags = classify_message(text)

        # Tag já existia (ou falhou): nunca medir de novo
        if not self.store.insert_message_tags(message_id, tags):
            return -1
        return self.aggregator.record(day, tags)

    def run(self, limit: Optional[int] = None) -> TaggingReport:
        """
        Executa um lote.

        Args:
            limit: Máximo de mensagens (ou env CLASSIFY_BATCH_LIMIT, default 500)
        """
        if limit is None:
            limit = env_int("CLASSIFY_BATCH_LIMIT", DEFAULT_BATCH_LIMIT)

        messages = self.store.fetch_untagged_messages(limit)
        report = TaggingReport(fetched=len(messages))
        logger.info(f"🏷️ {len(messages)} mensagem(ns) para classificar")

        for message in messages:
            applied = self.tag_message(message.id, message.text, message.day)
            if applied < 0:
                report.skipped += 1
                continue
            report.tagged += 1
            report.increments += applied

        logger.info(
            f"✅ Classificação concluída: {report.tagged} tagueadas, "
            f"{report.skipped} ignoradas, {report.increments} incrementos"
        )
        return report
