"""
Modelos de dados do chat: sessão, mensagens, leads, tags e produtos
"""
from enum import Enum
from datetime import date, datetime, timezone
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field


MAX_MESSAGE_CHARS = 8000


class UTM(BaseModel):
    """Campos de atribuição de campanha"""
    source: Optional[str] = None
    medium: Optional[str] = None
    campaign: Optional[str] = None
    content: Optional[str] = None
    term: Optional[str] = None


class SessionContext(BaseModel):
    """Contexto enviado pelo widget em toda chamada"""
    session_id: str = Field(..., min_length=6, description="ID gerado pelo navegador")
    page: str
    utm: Optional[UTM] = None
    started_at: Optional[str] = None
    user_agent: Optional[str] = None


class MessageSender(str, Enum):
    """Autor da mensagem"""
    USER = "user"
    BOT = "bot"

    @classmethod
    def coerce(cls, value: Any) -> "MessageSender":
        # Qualquer coisa diferente de "user" é tratada como bot
        return cls.USER if value == "user" else cls.BOT


class ChatTurn(BaseModel):
    """Turno da conversa no formato OpenAI"""
    role: str
    content: Optional[str] = ""


class LeadData(BaseModel):
    """Dados do formulário de lead"""
    nome: str = ""
    whats: str = ""
    lgpd_optin: bool = False

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "LeadData":
        payload = payload or {}
        return cls(
            nome=str(payload.get("nome") or "")[:120],
            whats=str(payload.get("whats") or "")[:60],
            lgpd_optin=bool(payload.get("lgpd_optin")),
        )


class Product(BaseModel):
    """Produto do catálogo normalizado"""
    id: str
    name: str
    price: Optional[float] = None
    image: Optional[str] = None
    url: Optional[str] = None


class ChatResponse(BaseModel):
    """Resposta do endpoint de chat"""
    output_text: str
    products: List[Product] = Field(default_factory=list)


class MessageTags(BaseModel):
    """Rótulos extraídos de uma mensagem do usuário"""
    room: Optional[str] = None
    product: Optional[str] = None
    style: Optional[str] = None
    color: Optional[str] = None
    intent: Optional[str] = None
    has_doubt: bool = False

    def labels(self) -> List[tuple]:
        """Pares (categoria, rótulo) na ordem das tabelas, incluindo vazios"""
        return [
            ("room", self.room),
            ("product", self.product),
            ("style", self.style),
            ("color", self.color),
            ("intent", self.intent),
        ]


class ProductIntent(BaseModel):
    """Resultado do resolvedor de intenção de produto"""
    need_products: bool = False
    terms: str = ""
    source: str = Field(default="fallback", description="llm ou fallback")


class BestEffortResult(BaseModel):
    """Resultado de efeito colateral best-effort (pode ser ignorado)"""
    success: bool
    error: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class UntaggedMessage(BaseModel):
    """Mensagem de usuário ainda sem tags"""
    id: int
    text: str = ""
    day: date


class TaggingReport(BaseModel):
    """Resumo de uma execução do job de classificação"""
    fetched: int = 0
    tagged: int = 0
    skipped: int = 0
    increments: int = 0
    finished_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
