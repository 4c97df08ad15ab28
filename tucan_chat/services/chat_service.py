"""
Fluxo de um turno de chat, log de eventos e captura de leads

Ordem do turno:
1. Garante a sessão
2. Obtém a resposta do modelo
3. Persiste a resposta do bot
4. Tenta extrair o nome do cliente
5. Resolve intenção de produto e busca no catálogo
6. Responde {output_text, products}

Nenhuma falha externa interrompe o turno.
"""
from typing import Any, Dict, List, Optional, Tuple
from loguru import logger
from pydantic import ValidationError

from ..models import (
    MAX_MESSAGE_CHARS, SessionContext, ChatTurn, MessageSender, LeadData,
    Product, ChatResponse, BestEffortResult,
)
from ..orchestrator.name_extractor import extract_first_name
from ..orchestrator.product_intent import ProductIntentResolver
from .completion_client import SYSTEM_PROMPT, CompletionError


MAINTENANCE_REPLY = "Desculpe, não consegui responder agora. Estamos em manutenção, tente novamente em instantes."
PRODUCTS_PER_TURN = 4
CONTEXT_KEYS = ("session_id", "page", "utm", "started_at", "user_agent")


def parse_context(payload: Dict[str, Any]) -> Optional[SessionContext]:
    """Valida o contexto da sessão; inválido → None (a chamada vira no-op)"""
    ctx_data = {k: payload.get(k) for k in CONTEXT_KEYS if payload.get(k) is not None}
    try:
        return SessionContext(**ctx_data)
    except ValidationError as e:
        logger.warning(f"⚠️ Contexto de sessão inválido, ignorando persistência: {e.errors()}")
        return None


def parse_turns(raw_turns: Any) -> List[ChatTurn]:
    """Converte a lista recebida em ChatTurn, descartando itens inválidos"""
    turns = []
    if not isinstance(raw_turns, list):
        return turns
    for raw in raw_turns:
        if not isinstance(raw, dict):
            continue
        try:
            turns.append(ChatTurn(**raw))
        except ValidationError:
            logger.debug(f"Turno descartado: {raw}")
    return turns


def latest_user_text(turns: List[ChatTurn]) -> str:
    for turn in reversed(turns):
        if turn.role == "user" and turn.content:
            return turn.content
    return ""


class ChatService:
    """Coordena store, modelo, catálogo e Brevo (todos injetados)"""

    def __init__(self, store, completion_client, catalog_client, attribution_client=None, intent_resolver=None):
        self.store = store
        self.completion_client = completion_client
        self.catalog_client = catalog_client
        self.attribution_client = attribution_client
        self.intent_resolver = intent_resolver or ProductIntentResolver(completion_client)

    # ==================== Chat ====================

    async def handle_chat(self, payload: Dict[str, Any]) -> ChatResponse:
        """Processa um turno; sempre retorna uma resposta"""
        ctx = parse_context(payload)
        turns = parse_turns(payload.get("messages", []))

        if ctx:
            self.store.ensure_session(ctx)

        try:
            output_text = await self.completion_client.complete(
                SYSTEM_PROMPT,
                [turn.dict() for turn in turns],
            )
        except CompletionError as e:
            logger.error(f"❌ Falha ao gerar resposta: {e}")
            return ChatResponse(output_text=MAINTENANCE_REPLY, products=[])

        if ctx:
            self.store.insert_message(ctx.session_id, MessageSender.BOT, output_text[:MAX_MESSAGE_CHARS])

        user_text = latest_user_text(turns)

        first_name = extract_first_name(user_text)
        if first_name and ctx:
            logger.info(f"👤 Nome detectado: {first_name}")
            self.store.update_session_name(ctx.session_id, first_name)

        products = await self._products_for(user_text)
        return ChatResponse(output_text=output_text, products=products)

    async def _products_for(self, user_text: str) -> List[Product]:
        intent = await self.intent_resolver.resolve(user_text)
        if not intent.need_products or not intent.terms:
            return []
        try:
            return await self.catalog_client.search(intent.terms, PRODUCTS_PER_TURN)
        except Exception as e:
            # Falha aqui não descarta a resposta já gravada
            logger.error(f"❌ Busca de produtos falhou no turno: {e}")
            return []

    # ==================== Log de eventos ====================

    def log_event(self, payload: Dict[str, Any]) -> BestEffortResult:
        """
        Registra evento do widget. Só `kind == "message"` grava mensagem;
        os demais apenas garantem a sessão.
        """
        ctx = parse_context(payload)
        if not ctx:
            return BestEffortResult(success=False, error="invalid context")

        self.store.ensure_session(ctx)

        kind = payload.get("kind")
        if kind != "message":
            return BestEffortResult(success=True, data={"kind": kind})

        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        who = MessageSender.coerce(data.get("who"))
        text = str(data.get("text") or "")[:MAX_MESSAGE_CHARS]

        message_id = self.store.insert_message(ctx.session_id, who, text, ts=payload.get("ts"))
        if message_id is None:
            return BestEffortResult(success=False, error="message not stored")
        return BestEffortResult(success=True, data={"message_id": message_id})

    # ==================== Leads ====================

    def submit_lead(self, payload: Dict[str, Any]) -> Tuple[BestEffortResult, Optional[LeadData]]:
        """Grava/atualiza o lead da sessão; retorna o lead para sincronização"""
        ctx = parse_context(payload)
        if not ctx:
            return BestEffortResult(success=False, error="invalid context"), None

        self.store.ensure_session(ctx)
        lead_payload = payload.get("lead") if isinstance(payload.get("lead"), dict) else {}
        lead = LeadData.from_payload(lead_payload)

        if not self.store.upsert_lead(ctx.session_id, lead):
            return BestEffortResult(success=False, error="lead not stored"), lead
        return BestEffortResult(success=True), lead

    def sync_lead(self, lead: LeadData) -> BestEffortResult:
        """Envia o lead para a Brevo; falhas só são logadas"""
        if self.attribution_client is None:
            return BestEffortResult(success=False, error="disabled")
        try:
            return self.attribution_client.upsert_contact(lead.nome, lead.whats)
        except Exception as e:
            logger.error(f"❌ Sincronização do lead falhou: {e}")
            return BestEffortResult(success=False, error=str(e))

    # ==================== Produtos ====================

    async def search_products(self, term: str, limit: int = PRODUCTS_PER_TURN) -> List[Product]:
        """Busca síncrona para o endpoint de produtos; propaga CatalogError"""
        return await self.catalog_client.search_strict(term, limit)
