"""
Script para criar as tabelas do chat no PostgreSQL
"""
import os
import sys
from pathlib import Path

# Adicionar root ao path
root = Path(__file__).parent.parent
sys.path.insert(0, str(root))

import psycopg2
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from dotenv import load_dotenv
from loguru import logger

from tucan_chat.services.chat_store import sanitize_pg_dsn

load_dotenv(root / ".env")


TABLES = {
    "chat_sessions": """
        CREATE TABLE IF NOT EXISTS chat_sessions (
            session_id text PRIMARY KEY,
            page text,
            utm_source text,
            utm_medium text,
            utm_campaign text,
            utm_content text,
            utm_term text,
            started_at timestamptz DEFAULT now(),
            user_agent text,
            first_name text
        );
    """,
    "chat_messages": """
        CREATE TABLE IF NOT EXISTS chat_messages (
            id bigserial PRIMARY KEY,
            session_id text NOT NULL REFERENCES chat_sessions(session_id),
            ts timestamptz NOT NULL DEFAULT now(),
            who text NOT NULL CHECK (who IN ('user', 'bot')),
            text text NOT NULL DEFAULT ''
        );

        CREATE INDEX IF NOT EXISTS idx_chat_messages_session ON chat_messages(session_id);
        CREATE INDEX IF NOT EXISTS idx_chat_messages_who ON chat_messages(who);
    """,
    "chat_message_tags": """
        CREATE TABLE IF NOT EXISTS chat_message_tags (
            message_id bigint PRIMARY KEY REFERENCES chat_messages(id) ON DELETE CASCADE,
            room text,
            product text,
            style text,
            color text,
            intent text,
            has_doubt boolean NOT NULL DEFAULT false
        );
    """,
    "chat_metrics_daily": """
        CREATE TABLE IF NOT EXISTS chat_metrics_daily (
            date date NOT NULL,
            category text NOT NULL,
            item text NOT NULL,
            count integer NOT NULL DEFAULT 0,
            PRIMARY KEY (date, category, item)
        );
    """,
    "chat_leads": """
        CREATE TABLE IF NOT EXISTS chat_leads (
            session_id text PRIMARY KEY REFERENCES chat_sessions(session_id),
            nome text,
            whats text,
            lgpd_optin boolean NOT NULL DEFAULT false,
            created_at timestamptz DEFAULT now()
        );
    """,
}


def get_connection():
    """Conecta no PostgreSQL usando DIRECT_URL"""
    database_url = os.getenv("DIRECT_URL") or os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL ou DIRECT_URL não configurado no .env")

    conn = psycopg2.connect(sanitize_pg_dsn(database_url))
    conn.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
    return conn


def main():
    conn = get_connection()
    cursor = conn.cursor()
    try:
        # Ordem importa por causa das foreign keys
        for name, ddl in TABLES.items():
            logger.info(f"📦 Criando tabela {name}...")
            cursor.execute(ddl)
        logger.info("✅ Tabelas do chat prontas")
    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    main()
