"""
Cliente de completions da OpenAI usado pelo chat e pelo resolvedor de intenção
"""
import os
from typing import Dict, List, Optional
from loguru import logger
from openai import AsyncOpenAI

from ..models import MAX_MESSAGE_CHARS


SYSTEM_PROMPT = (
    "Você é o consultor de interiores da Tucan Home. Fale em PT-BR. "
    "Não recomende madeira/metal nem luz ajustável; prefira plástico/gesso. "
    "Sugira produtos Tucan quando fizer sentido. Seja prático, com medidas e paletas."
)

ALLOWED_ROLES = {"user", "assistant"}
MAX_TURNS = 20


class CompletionError(Exception):
    """Falha ao obter resposta do modelo (rede, API, resposta vazia)"""


def sanitize_turns(turns: List[Dict]) -> List[Dict[str, str]]:
    """Mantém só turnos user/assistant com conteúdo, truncados"""
    cleaned = []
    for turn in turns or []:
        if hasattr(turn, "dict"):
            turn = turn.dict()
        role = turn.get("role")
        content = turn.get("content")
        if role not in ALLOWED_ROLES or not content:
            continue
        cleaned.append({"role": role, "content": str(content)[:MAX_MESSAGE_CHARS]})
    return cleaned[-MAX_TURNS:]


class CompletionClient:
    """
    Wrapper fino sobre AsyncOpenAI.

    Qualquer falha vira CompletionError; quem chama decide o fallback.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None, client=None):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.client = client

        if self.client is None:
            if api_key:
                self.client = AsyncOpenAI(api_key=api_key, timeout=30.0)
                logger.info(f"✅ OpenAI configurado com modelo {self.model}")
            else:
                logger.warning("⚠️ OPENAI_API_KEY não configurada - chat responderá com mensagem de manutenção")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def complete(
        self,
        system_prompt: str,
        turns: List[Dict],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Envia system prompt + turnos e retorna o texto da resposta.

        Raises:
            CompletionError: cliente desabilitado, erro da API ou texto vazio
        """
        if not self.client:
            raise CompletionError("OpenAI não configurado")

        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(sanitize_turns(turns))

        params = {"model": self.model, "messages": messages}
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        if json_mode:
            params["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**params)
            text = response.choices[0].message.content
        except Exception as e:
            raise CompletionError(str(e)) from e

        if not text or not text.strip():
            raise CompletionError("resposta vazia do modelo")
        return text.strip()
