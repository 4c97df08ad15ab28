"""
Persistência do chat no Postgres: sessões, mensagens, tags, métricas e leads

Política de conflito por tabela:
- chat_sessions: insert-ignore (nome atualizado por patch dedicado)
- chat_messages: append-only
- chat_message_tags: insert-ignore (uma linha por mensagem)
- chat_metrics_daily: increment-on-conflict
- chat_leads: upsert com substituição de nome/whats/opt-in

Nenhum método levanta exceção: falhas são logadas e viram o valor padrão.
"""
import os
from datetime import date, datetime, timezone
from typing import Any, Callable, List, Optional, Sequence
from urllib.parse import urlparse, parse_qsl, urlencode, urlunparse
import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor
from loguru import logger

from ..models import (
    MAX_MESSAGE_CHARS, SessionContext, MessageSender, LeadData,
    MessageTags, UntaggedMessage,
)


DROP_QS_KEYS = {"pgbouncer", "connection_limit"}


def sanitize_pg_dsn(database_url: str) -> str:
    """Remove parâmetros incompatíveis com psycopg2"""
    u = urlparse(database_url)
    qs = dict(parse_qsl(u.query, keep_blank_values=True))
    for k in list(qs.keys()):
        if k in DROP_QS_KEYS:
            qs.pop(k, None)
    new_query = urlencode(qs, doseq=True)
    return urlunparse((u.scheme, u.netloc, u.path, u.params, new_query, u.fragment))


class ChatStore:
    """Store Postgres com pool de conexões"""

    def __init__(self, database_url: Optional[str] = None, connection_pool=None):
        """
        Args:
            database_url: DSN (ou env DIRECT_URL / DATABASE_URL)
            connection_pool: Pool já criado (testes)
        """
        database_url = database_url or os.getenv("DIRECT_URL") or os.getenv("DATABASE_URL")
        self.sslmode = os.getenv("PGSSLMODE", "require")
        self._pool = connection_pool
        self.database_url = sanitize_pg_dsn(database_url) if database_url else None

        if self._pool is not None:
            return

        if not self.database_url:
            logger.warning("⚠️ DATABASE_URL não configurado - persistência desabilitada")
            return

        try:
            self._pool = pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=5,
                dsn=self.database_url,
                sslmode=self.sslmode,
            )
            logger.info("Connection pool Chat criado (1-5 conexoes)")
        except Exception as e:
            logger.error(f"Erro ao criar pool do chat: {e}")
            self._pool = None

    @property
    def enabled(self) -> bool:
        return self._pool is not None or bool(self.database_url)

    def _get_connection(self):
        """Obtém conexão do pool, com fallback para conexão direta"""
        if self._pool:
            try:
                return self._pool.getconn()
            except Exception as e:
                logger.warning(f"Pool falhou, tentando conexao direta: {e}")
        if self.database_url:
            try:
                return psycopg2.connect(self.database_url, sslmode=self.sslmode)
            except Exception as e:
                logger.error(f"Erro ao conectar diretamente: {e}")
        return None

    def _put_connection(self, conn):
        """Devolve conexão ao pool ou fecha se foi direta"""
        if not conn:
            return
        if self._pool:
            try:
                self._pool.putconn(conn)
                return
            except Exception as e:
                logger.debug(f"putconn falhou, fechando conexão: {e}")
        try:
            conn.close()
        except Exception as e:
            logger.debug(f"Erro ao fechar conexão: {e}")

    def _run(
        self,
        operation: str,
        query: str,
        params: Sequence[Any],
        default: Any,
        handle: Optional[Callable[[Any], Any]] = None,
    ) -> Any:
        """
        Executa uma query numa transação própria.

        Args:
            operation: Nome usado nos logs
            handle: Recebe o cursor após execute e produz o retorno

        Returns:
            Resultado de `handle` (ou True) ou `default` em caso de falha
        """
        conn = self._get_connection()
        if not conn:
            logger.warning(f"⚠️ {operation}: sem conexão disponível")
            return default

        try:
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            cursor.execute(query, params)
            result = handle(cursor) if handle else True
            conn.commit()
            cursor.close()
            return result
        except Exception as e:
            logger.error(f"❌ {operation} falhou: {e}")
            try:
                conn.rollback()
            except Exception as rollback_error:
                logger.debug(f"Rollback falhou: {rollback_error}")
            return default
        finally:
            self._put_connection(conn)

    # ==================== Sessões ====================

    def ensure_session(self, ctx: SessionContext) -> bool:
        """Cria a sessão se não existir; nunca sobrescreve atribuição"""
        utm = ctx.utm
        started_at = ctx.started_at or datetime.now(timezone.utc).isoformat()
        return self._run(
            "ensure_session",
            """
            INSERT INTO chat_sessions
                (session_id, page, utm_source, utm_medium, utm_campaign,
                 utm_content, utm_term, started_at, user_agent)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (session_id) DO NOTHING
            """,
            (
                ctx.session_id,
                ctx.page,
                utm.source if utm else None,
                utm.medium if utm else None,
                utm.campaign if utm else None,
                utm.content if utm else None,
                utm.term if utm else None,
                started_at,
                ctx.user_agent,
            ),
            default=False,
        )

    def update_session_name(self, session_id: str, first_name: str) -> bool:
        """Patch do primeiro nome; nome vazio não apaga o anterior"""
        if not first_name:
            return False
        return self._run(
            "update_session_name",
            "UPDATE chat_sessions SET first_name = %s WHERE session_id = %s",
            (first_name, session_id),
            default=False,
            handle=lambda cursor: cursor.rowcount > 0,
        )

    # ==================== Mensagens ====================

    def insert_message(
        self,
        session_id: str,
        who: MessageSender,
        text: str,
        ts: Optional[str] = None,
    ) -> Optional[int]:
        """Anexa mensagem e retorna o id (ou None em falha)"""
        who = MessageSender.coerce(getattr(who, "value", who))
        return self._run(
            "insert_message",
            """
            INSERT INTO chat_messages (session_id, ts, who, text)
            VALUES (%s, COALESCE(%s::timestamptz, NOW()), %s, %s)
            RETURNING id
            """,
            (session_id, ts, who.value, (text or "")[:MAX_MESSAGE_CHARS]),
            default=None,
            handle=lambda cursor: cursor.fetchone()["id"],
        )

    def fetch_untagged_messages(self, limit: int = 500) -> List[UntaggedMessage]:
        """Mensagens de usuário sem linha em chat_message_tags, por id crescente"""
        return self._run(
            "fetch_untagged_messages",
            """
            SELECT m.id, m.text, m.ts::date AS day
            FROM chat_messages m
            LEFT JOIN chat_message_tags t ON t.message_id = m.id
            WHERE m.who = 'user' AND t.message_id IS NULL
            ORDER BY m.id ASC
            LIMIT %s
            """,
            (limit,),
            default=[],
            handle=lambda cursor: [
                UntaggedMessage(id=row["id"], text=row["text"] or "", day=row["day"])
                for row in cursor.fetchall()
            ],
        )

    # ==================== Tags e métricas ====================

    def insert_message_tags(self, message_id: int, tags: MessageTags) -> bool:
        """
        Grava tags uma única vez por mensagem.

        Returns:
            True só se a linha foi criada agora (conflito → False)
        """
        return self._run(
            "insert_message_tags",
            """
            INSERT INTO chat_message_tags
                (message_id, room, product, style, color, intent, has_doubt)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (message_id) DO NOTHING
            RETURNING message_id
            """,
            (message_id, tags.room, tags.product, tags.style, tags.color, tags.intent, tags.has_doubt),
            default=False,
            handle=lambda cursor: cursor.fetchone() is not None,
        )

    def increment_daily_metric(self, day: date, category: str, item: str) -> bool:
        """Incrementa (day, category, item) em 1, criando a linha se preciso"""
        return self._run(
            "increment_daily_metric",
            """
            INSERT INTO chat_metrics_daily (date, category, item, count)
            VALUES (%s, %s, %s, 1)
            ON CONFLICT (date, category, item)
            DO UPDATE SET count = chat_metrics_daily.count + 1
            """,
            (day, category, item),
            default=False,
        )

    # ==================== Leads ====================

    def upsert_lead(self, session_id: str, lead: LeadData) -> bool:
        """Um lead por sessão; a última submissão vence"""
        return self._run(
            "upsert_lead",
            """
            INSERT INTO chat_leads (session_id, nome, whats, lgpd_optin, created_at)
            VALUES (%s, %s, %s, %s, NOW())
            ON CONFLICT (session_id) DO UPDATE
                SET nome = EXCLUDED.nome,
                    whats = EXCLUDED.whats,
                    lgpd_optin = EXCLUDED.lgpd_optin
            """,
            (session_id, lead.nome, lead.whats, lead.lgpd_optin),
            default=False,
        )
