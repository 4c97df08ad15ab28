"""
API FastAPI do chat da Tucan Home
"""
import os
from typing import Optional
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, BackgroundTasks, Request, Query
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .. import __version__
from ..models import ChatResponse
from ..services.brevo_client import BrevoClient
from ..services.catalog_client import CatalogClient, CatalogError
from ..services.chat_service import ChatService, MAINTENANCE_REPLY
from ..services.chat_store import ChatStore
from ..services.completion_client import CompletionClient


def build_chat_service() -> ChatService:
    """Instancia as dependências a partir do ambiente"""
    completion_client = CompletionClient()
    return ChatService(
        store=ChatStore(),
        completion_client=completion_client,
        catalog_client=CatalogClient(),
        attribution_client=BrevoClient(),
    )


async def _read_body(request: Request) -> dict:
    """Corpo JSON como dict; qualquer outra coisa vira {}"""
    try:
        body = await request.json()
    except ValueError:
        logger.warning("⚠️ Corpo da requisição não é JSON válido")
        return {}
    return body if isinstance(body, dict) else {}


def create_app(service: Optional[ChatService] = None) -> FastAPI:
    """
    Cria a aplicação.

    Args:
        service: ChatService pronto (testes). Se None, é criado no startup.
    """
    app = FastAPI(
        title="Tucan Chat API",
        description="Backend do chat de consultoria de interiores da Tucan Home",
        version=__version__,
    )

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.chat_service = service

    @app.on_event("startup")
    async def startup_event():
        logger.info("🚀 Iniciando Tucan Chat API...")
        if app.state.chat_service is None:
            app.state.chat_service = build_chat_service()
        logger.info("💬 ChatService inicializado")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("👋 Encerrando Tucan Chat API...")

    # ==================== Endpoints ====================

    @app.get("/api/health")
    async def health():
        """Health check"""
        return {"ok": True}

    @app.post("/api/log")
    async def log_event(request: Request):
        """
        Registra evento do widget (fire-and-forget).

        Sempre retorna {"ok": true}, mesmo com contexto inválido ou
        falha de persistência.
        """
        payload = await _read_body(request)
        try:
            result = app.state.chat_service.log_event(payload)
            if not result.success:
                logger.info(f"ℹ️ Log ignorado: {result.error}")
        except Exception as e:
            logger.error(f"❌ Erro no /api/log: {e}")
        return {"ok": True}

    @app.post("/api/lead")
    async def capture_lead(request: Request, background_tasks: BackgroundTasks):
        """
        Captura lead e agenda sincronização com a Brevo.

        Sempre retorna {"ok": true}: lead nunca bloqueia o chat.
        """
        payload = await _read_body(request)
        try:
            result, lead = app.state.chat_service.submit_lead(payload)
            if not result.success:
                logger.warning(f"⚠️ Lead não gravado: {result.error}")
            if lead is not None:
                background_tasks.add_task(app.state.chat_service.sync_lead, lead)
        except Exception as e:
            logger.error(f"❌ Erro no /api/lead: {e}")
        return {"ok": True}

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(request: Request):
        """
        Turno de conversa.

        Returns:
            - output_text: resposta do consultor (ou mensagem de manutenção)
            - products: produtos sugeridos (pode ser vazio)
        """
        payload = await _read_body(request)
        try:
            return await app.state.chat_service.handle_chat(payload)
        except Exception as e:
            logger.exception(f"❌ Erro inesperado no chat: {e}")
            return ChatResponse(output_text=MAINTENANCE_REPLY, products=[])

    @app.get("/api/products")
    async def search_products(q: str = Query(""), limit: int = Query(4)):
        """
        Busca direta no catálogo.

        Único endpoint que responde erro: 502 quando o catálogo falha.
        """
        try:
            products = await app.state.chat_service.search_products(q, limit)
        except CatalogError as e:
            logger.error(f"❌ Busca de produtos falhou: {e}")
            raise HTTPException(status_code=502, detail="Falha ao buscar produtos.")
        return {"products": [p.dict() for p in products]}

    return app


load_dotenv()
app = create_app()
