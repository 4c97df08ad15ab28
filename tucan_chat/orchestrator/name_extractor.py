"""
Extração heurística do primeiro nome do cliente
"""
import re
from typing import List

from .message_classifier import CATEGORY_TABLES
from .product_intent import FALLBACK_BUCKETS

# Palavra de 2-20 letras (acentos permitidos)
_NAME = r"([^\W\d_]{2,20})\b"

INTRODUCTION_PATTERNS: List[re.Pattern] = [
    re.compile(rf"\bmeu\s+nome\s+(?:é|e)\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bme\s+chamo\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bpode\s+me\s+chamar\s+de\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"(?:^|\beu\s+)sou\s+(?:o\s+|a\s+)?{_NAME}", re.IGNORECASE),
    re.compile(rf"\baqui\s+(?:é|e)\s+(?:o\s+|a\s+)?{_NAME}", re.IGNORECASE),
]

BARE_WORD_PATTERN = re.compile(r"^[^\W\d_]{2,20}[.!]?$")

# Respostas curtas que não são nomes
NOT_NAMES = {
    "oi", "ola", "olá", "opa", "eai", "sim", "não", "nao", "ok", "okay",
    "obrigado", "obrigada", "valeu", "tchau", "beleza", "blz", "bom", "boa",
    "claro", "certo", "isso", "quero", "talvez", "de", "da", "do", "um", "uma",
    "cliente", "novo", "nova", "interessado", "interessada",
    "legal", "perfeito", "perfeita", "ótimo", "otimo", "ótima", "otima", "show",
    "top", "massa", "bacana", "entendi", "combinado", "tranquilo", "exato",
    "verdade", "adorei", "amei", "lindo", "linda", "nossa", "então", "entao",
    "hum", "hmm", "pode", "quanto", "qual", "onde", "produto", "produtos",
}

# Rótulos do catálogo e das categorias (incluindo plurais)
_CATALOG_PATTERNS = [pattern for table in CATEGORY_TABLES.values() for _, pattern in table]
_CATALOG_PATTERNS += [pattern for _, pattern in FALLBACK_BUCKETS]


def is_not_a_name(word: str) -> bool:
    """Resposta curta ou palavra de catálogo (ex: "sim", "pendente", "salas")"""
    if word.lower() in NOT_NAMES:
        return True
    return any(pattern.fullmatch(word) for pattern in _CATALOG_PATTERNS)


def normalize_first_name(raw: str) -> str:
    """Primeiro token, inicial maiúscula e restante minúsculo"""
    tokens = (raw or "").split()
    if not tokens:
        return ""
    return tokens[0].capitalize()


def extract_first_name(message: str) -> str:
    """
    Tenta extrair o primeiro nome do cliente.

    Ordem: frases de apresentação ("meu nome é", "me chamo", "sou o/a"),
    depois mensagem com uma única palavra. Retorna "" se nada casar.

    Example:
        >>> extract_first_name("meu nome é joão")
        'João'
        >>> extract_first_name("oi, tudo bem?")
        ''
    """
    text = (message or "").strip()
    if not text:
        return ""

    for pattern in INTRODUCTION_PATTERNS:
        match = pattern.search(text)
        if match:
            candidate = match.group(1)
            if is_not_a_name(candidate):
                continue
            return normalize_first_name(candidate)

    if BARE_WORD_PATTERN.match(text):
        candidate = text.rstrip(".!")
        if not is_not_a_name(candidate):
            return normalize_first_name(candidate)

    return ""
