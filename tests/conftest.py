"""
Fakes em memória para store e clientes externos (sem banco, sem rede)
"""
from datetime import date
from typing import Dict, List, Optional

import pytest

from tucan_chat.models import BestEffortResult, MessageTags, UntaggedMessage, Product
from tucan_chat.services.catalog_client import CatalogError
from tucan_chat.services.chat_service import ChatService
from tucan_chat.services.completion_client import CompletionError


class InMemoryChatStore:
    """Mesmas políticas de conflito do ChatStore, em dicionários"""

    def __init__(self):
        self.sessions: Dict[str, dict] = {}
        self.messages: List[dict] = []
        self.tags: Dict[int, MessageTags] = {}
        self.metrics: Dict[tuple, int] = {}
        self.leads: Dict[str, dict] = {}
        self.fail_tags_for = set()

    def ensure_session(self, ctx):
        if ctx.session_id not in self.sessions:
            row = ctx.dict()
            row["first_name"] = None
            self.sessions[ctx.session_id] = row
        return True

    def update_session_name(self, session_id, first_name):
        if not first_name or session_id not in self.sessions:
            return False
        self.sessions[session_id]["first_name"] = first_name
        return True

    def insert_message(self, session_id, who, text, ts=None):
        day = date.fromisoformat(ts[:10]) if ts else date.today()
        message_id = len(self.messages) + 1
        self.messages.append({
            "id": message_id,
            "session_id": session_id,
            "who": getattr(who, "value", who),
            "text": text,
            "day": day,
        })
        return message_id

    def add_user_message(self, text, day=date(2026, 10, 1), session_id="sessao-teste"):
        return self.insert_message(session_id, "user", text, ts=day.isoformat())

    def fetch_untagged_messages(self, limit=500):
        rows = [
            UntaggedMessage(id=m["id"], text=m["text"], day=m["day"])
            for m in self.messages
            if m["who"] == "user" and m["id"] not in self.tags
        ]
        return rows[:limit]

    def insert_message_tags(self, message_id, tags):
        if message_id in self.fail_tags_for or message_id in self.tags:
            return False
        self.tags[message_id] = tags
        return True

    def increment_daily_metric(self, day, category, item):
        key = (day, category, item)
        self.metrics[key] = self.metrics.get(key, 0) + 1
        return True

    def upsert_lead(self, session_id, lead):
        self.leads[session_id] = lead.dict()
        return True


class FakeCompletionClient:
    """Responde o chat com `reply` e a intenção com `intent_reply`"""

    def __init__(self, reply="Que tal um pendente branco?", intent_reply=None, error=None):
        self.reply = reply
        self.intent_reply = intent_reply
        self.error = error
        self.calls = []

    async def complete(self, system_prompt, turns, temperature=None, max_tokens=None, json_mode=False):
        self.calls.append({"system_prompt": system_prompt, "turns": turns, "json_mode": json_mode})
        if self.error:
            raise CompletionError(self.error)
        if json_mode:
            if self.intent_reply is None:
                raise CompletionError("intenção indisponível")
            return self.intent_reply
        return self.reply


class FakeCatalogClient:
    def __init__(self, products=None, fail=False):
        self.products = products if products is not None else [
            Product(id="1", name="Pendente Gota Branco", price=189.9,
                    image="https://cdn.example/gota.jpg", url="https://loja.example/produtos/gota"),
        ]
        self.fail = fail
        self.crash = None
        self.terms = []

    async def search_strict(self, term, limit=4):
        self.terms.append(term)
        if self.fail:
            raise CatalogError("catálogo fora do ar")
        if len((term or "").strip()) < 2:
            return []
        return self.products[:limit]

    async def search(self, term, limit=4):
        if self.crash:
            raise self.crash
        try:
            return await self.search_strict(term, limit)
        except CatalogError:
            return []


class FakeBrevoClient:
    def __init__(self):
        self.contacts = []

    def upsert_contact(self, name, contact):
        self.contacts.append((name, contact))
        return BestEffortResult(success=True)


@pytest.fixture
def store():
    return InMemoryChatStore()


@pytest.fixture
def completion():
    return FakeCompletionClient()


@pytest.fixture
def catalog():
    return FakeCatalogClient()


@pytest.fixture
def brevo():
    return FakeBrevoClient()


@pytest.fixture
def service(store, completion, catalog, brevo):
    return ChatService(
        store=store,
        completion_client=completion,
        catalog_client=catalog,
        attribution_client=brevo,
    )
