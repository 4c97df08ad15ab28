"""
Leitura tolerante de variáveis de ambiente numéricas
"""
import os
from loguru import logger


def env_int(name: str, default: int) -> int:
    """Inteiro do ambiente; vazio ou inválido → default (com aviso)"""
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"⚠️ {name}={raw!r} não é um inteiro, usando {default}")
        return default
