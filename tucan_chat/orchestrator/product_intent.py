"""
Product Intent Resolver - Decide se o turno pede produtos e qual termo buscar
Usa LLM (OpenAI) com saída JSON estrita e fallback determinístico por regex
"""
import json
import re
from typing import List, Optional, Tuple
from loguru import logger

from ..models import ProductIntent


# Buckets de fallback (ordem importa: primeiro que casar vence)
FALLBACK_BUCKETS: List[Tuple[str, re.Pattern]] = [
    ("pendente", re.compile(r"\bpendentes?\b", re.IGNORECASE)),
    ("luminária", re.compile(r"\b(lumin[aá]rias?|spots?|trilhos?|plafons?)\b", re.IGNORECASE)),
    ("abajur", re.compile(r"\babajur(es)?\b", re.IGNORECASE)),
    ("arandela", re.compile(r"\barandelas?\b", re.IGNORECASE)),
    ("lustre", re.compile(r"\blustres?\b", re.IGNORECASE)),
    ("vaso", re.compile(r"\bvasos?\b", re.IGNORECASE)),
    ("cachepô", re.compile(r"\bcachep[oô]s?\b", re.IGNORECASE)),
]

INTENT_SYSTEM_PROMPT = (
    "Você analisa mensagens de clientes da Tucan Home (decoração e iluminação). "
    "Responda APENAS com um JSON no formato "
    '{"need_products": true|false, "terms": "termo de busca"}. '
    "need_products é true quando o cliente quer ver, comprar ou comparar produtos. "
    "terms é uma ou duas palavras no singular para buscar no catálogo "
    '(ex: "pendente", "vaso"), ou "" quando need_products for false.'
)

MAX_TERMS_CHARS = 60


def resolve_with_fallback(message: str) -> ProductIntent:
    """
    Resolve intenção de produto só com regex.

    Example:
        >>> resolve_with_fallback("queria um pendente pra sala")
        ProductIntent(need_products=True, terms='pendente', source='fallback')
    """
    text = message or ""
    for term, pattern in FALLBACK_BUCKETS:
        if pattern.search(text):
            return ProductIntent(need_products=True, terms=term, source="fallback")
    return ProductIntent(need_products=False, terms="", source="fallback")


def parse_intent_json(raw: Optional[str]) -> ProductIntent:
    """
    Interpreta a resposta do LLM como JSON estrito.

    Raises:
        ValueError: resposta vazia, JSON inválido ou campos com tipo errado
    """
    if not raw or not raw.strip():
        raise ValueError("resposta vazia")

    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("JSON não é um objeto")

    need = data.get("need_products")
    terms = data.get("terms", "")
    if not isinstance(need, bool):
        raise ValueError(f"need_products inválido: {need!r}")
    if terms is None:
        terms = ""
    if not isinstance(terms, str):
        raise ValueError(f"terms inválido: {terms!r}")

    terms = terms.strip()[:MAX_TERMS_CHARS]
    return ProductIntent(need_products=need, terms=terms if need else "", source="llm")


class ProductIntentResolver:
    """Classifica intenção de produto do último turno do cliente"""

    def __init__(self, completion_client=None):
        """
        Args:
            completion_client: Cliente com `complete(system_prompt, turns, ...)`.
                               Se None, usa apenas o fallback regex.
        """
        self.completion_client = completion_client

    async def resolve_with_llm(self, message: str) -> ProductIntent:
        """Caminho primário; propaga qualquer erro para o chamador"""
        raw = await self.completion_client.complete(
            INTENT_SYSTEM_PROMPT,
            [{"role": "user", "content": message}],
            temperature=0,
            max_tokens=60,
            json_mode=True,
        )
        return parse_intent_json(raw)

    async def resolve(self, message: str) -> ProductIntent:
        """
        Resolve {need_products, terms}. Nunca levanta exceção.
        """
        if not message or not message.strip():
            return ProductIntent(need_products=False, terms="", source="fallback")

        if self.completion_client is not None:
            try:
                intent = await self.resolve_with_llm(message)
                logger.info(f"🤖 Intenção de produto (LLM): {intent.need_products} / '{intent.terms}'")
                return intent
            except Exception as e:
                logger.warning(f"⚠️ Classificação de produto via LLM falhou, usando regex: {e}")

        intent = resolve_with_fallback(message)
        logger.info(f"🎯 Intenção de produto (regex): {intent.need_products} / '{intent.terms}'")
        return intent
