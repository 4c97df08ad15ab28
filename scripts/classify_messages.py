"""
Classifica mensagens de usuário ainda sem tags e atualiza chat_metrics_daily

Uso:
    python scripts/classify_messages.py [--limit 500]
"""
import argparse
import sys
from pathlib import Path

root = Path(__file__).parent.parent
sys.path.insert(0, str(root))

from dotenv import load_dotenv
from loguru import logger

from tucan_chat.services.chat_store import ChatStore
from tucan_chat.services.message_tagger import MessageTagger

load_dotenv(root / ".env")


def main() -> int:
    parser = argparse.ArgumentParser(description="Classifica mensagens do chat")
    parser.add_argument("--limit", type=int, default=None, help="Máximo de mensagens no lote")
    args = parser.parse_args()

    try:
        store = ChatStore()
        if not store.enabled:
            logger.error("❌ DATABASE_URL não configurado")
            return 1
        report = MessageTagger(store).run(limit=args.limit)
    except Exception as e:
        logger.exception(f"❌ Erro na classificação: {e}")
        return 1

    logger.info(f"OK classify: {report.fetched}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
