"""
Cliente para sincronizar leads com a Brevo (lista de contatos)
https://developers.brevo.com/reference/createcontact
"""
import os
from typing import Optional
import requests
from loguru import logger

from ..models import BestEffortResult
from .env import env_int


class BrevoClient:
    """
    Sincroniza contatos com a Brevo.

    Best-effort: nunca levanta exceção, falhas são apenas logadas.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        list_id: Optional[int] = None,
        base_url: str = "https://api.brevo.com/v3",
        origin: str = "Chat Tucan",
    ):
        self.api_key = api_key or os.getenv("BREVO_API_KEY")
        self.list_id = list_id or env_int("BREVO_LIST_ID", 6)
        self.base_url = base_url
        self.origin = origin

        if not self.api_key:
            logger.info("ℹ️ BREVO_API_KEY não configurada, leads ficam só no banco")

    def upsert_contact(self, name: str, contact: str) -> BestEffortResult:
        """
        Cria ou atualiza contato na lista configurada.

        Args:
            name: Nome do lead
            contact: WhatsApp do lead

        Returns:
            BestEffortResult (pode ser ignorado pelo chamador)
        """
        if not self.api_key:
            return BestEffortResult(success=False, error="disabled")

        payload = {
            "attributes": {"NOME": name, "WHATS": contact, "ORIGEM": self.origin},
            "updateEnabled": True,
            "listIds": [self.list_id],
        }
        headers = {"Content-Type": "application/json", "api-key": self.api_key}

        try:
            response = requests.post(f"{self.base_url}/contacts", json=payload, headers=headers, timeout=10)
            response.raise_for_status()

            # 204 em updates não tem corpo
            data = response.json() if response.content else {}
            logger.info("✅ Lead sincronizado com Brevo")
            return BestEffortResult(success=True, data=data)

        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"❌ Erro Brevo: {e}")
            return BestEffortResult(success=False, error=str(e))
