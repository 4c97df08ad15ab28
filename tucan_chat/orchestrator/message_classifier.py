"""
Message Classifier - Dicionários de categorias para analytics

Cada tabela é uma lista ordenada de (rótulo, padrão). A primeira
correspondência vence; a ordem da tabela é a única prioridade.
"""
import re
from typing import List, Optional, Tuple, Dict

from ..models import MessageTags


LabelTable = List[Tuple[str, re.Pattern]]


def _table(entries: List[Tuple[str, str]]) -> LabelTable:
    return [(label, re.compile(pattern, re.IGNORECASE)) for label, pattern in entries]


ROOM_PATTERNS = _table([
    ("sala", r"\bsalas?\b"),
    ("quarto", r"\bquartos?\b"),
    ("cozinha", r"\bcozinhas?\b"),
    ("banheiro", r"\bbanheiros?\b"),
    ("varanda", r"\bvarandas?\b"),
    ("home office", r"\b(home ?offices?|escrit[oó]rios?)\b"),
])

PRODUCT_PATTERNS = _table([
    ("vaso", r"\bvasos?\b"),
    ("abajur", r"\babajur(es)?\b"),
    ("pendente", r"\bpendentes?\b"),
    ("arandela", r"\barandelas?\b"),
    ("luminária", r"\blumin[aá]rias?\b"),
])

STYLE_PATTERNS = _table([
    ("minimalista", r"\bminimal(ista|istas|ismo)\b"),
    ("escandinavo", r"\bescandinav[oa]s?\b"),
    ("industrial", r"\bindustria(l|is)\b"),
    ("rústico", r"\br[uú]stic[oa]s?\b"),
    ("moderno", r"\bmodern[oa]s?\b"),
    ("boho", r"\bboho\b"),
])

COLOR_PATTERNS = _table([
    ("bege", r"\bbeges?\b"),
    ("cinza", r"\bcinzas?\b"),
    ("preto", r"\bpret[oa]s?\b"),
    ("branco", r"\branc[oa]s?\b"),
    ("terracota", r"\bterracotas?\b"),
    ("madeira", r"\bmadeiras?\b"),
])

INTENT_PATTERNS = _table([
    ("orçamento", r"\bor[cç]a?ment(o|a)s?\b"),
    ("compra", r"\bcompr(ar|a|ando|aria)\b"),
    ("descoberta", r"\b(ideias?|inspira[cç][aã]o|inspira[cç][oõ]es|dicas?)\b"),
])

# Ordem das categorias = ordem de gravação das métricas
CATEGORY_TABLES: Dict[str, LabelTable] = {
    "room": ROOM_PATTERNS,
    "product": PRODUCT_PATTERNS,
    "style": STYLE_PATTERNS,
    "color": COLOR_PATTERNS,
    "intent": INTENT_PATTERNS,
}

DOUBT_PATTERN = re.compile(
    r"\?|\b(d[uú]vidas?|como|qual|quais|quanto|quanta|pode|posso|devo|ser[aá])\b",
    re.IGNORECASE,
)


def match_label(table: LabelTable, text: str) -> Optional[str]:
    """Retorna o primeiro rótulo cujo padrão aparece no texto"""
    if not text:
        return None
    for label, pattern in table:
        if pattern.search(text):
            return label
    return None


def detect_doubt(text: str) -> bool:
    """Detecta pergunta/dúvida: '?' ou palavra interrogativa/modal"""
    return bool(text) and DOUBT_PATTERN.search(text) is not None


def classify_message(text: Optional[str]) -> MessageTags:
    """
    Classifica uma mensagem nas cinco categorias independentes.

    Função pura: mesma entrada, mesmas tags.

    Example:
        >>> classify_message("ideias pra sala com pendente preto?")
        MessageTags(room='sala', product='pendente', style=None,
                    color='preto', intent='descoberta', has_doubt=True)
    """
    text = text or ""
    labels = {category: match_label(table, text) for category, table in CATEGORY_TABLES.items()}
    return MessageTags(has_doubt=detect_doubt(text), **labels)
