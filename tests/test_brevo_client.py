"""
Testes do cliente Brevo (requests simulado)
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from tucan_chat.services.brevo_client import BrevoClient


class TestBrevoClient:
    def test_disabled_without_key(self, monkeypatch):
        monkeypatch.delenv("BREVO_API_KEY", raising=False)
        result = BrevoClient().upsert_contact("Ana", "11999999999")

        assert result.success is False
        assert result.error == "disabled"

    @pytest.mark.parametrize("raw", ["", "  ", "abc"])
    def test_unusable_list_id_falls_back_to_default(self, monkeypatch, raw):
        monkeypatch.setenv("BREVO_LIST_ID", raw)
        assert BrevoClient(api_key="k").list_id == 6

    def test_list_id_from_env(self, monkeypatch):
        monkeypatch.setenv("BREVO_LIST_ID", "12")
        assert BrevoClient(api_key="k").list_id == 12

    def test_posts_contact(self):
        response = MagicMock(status_code=201, content=b'{"id": 9}')
        response.json.return_value = {"id": 9}

        with patch("tucan_chat.services.brevo_client.requests.post", return_value=response) as post:
            result = BrevoClient(api_key="chave", list_id=6).upsert_contact("Ana", "11999999999")

        assert result.success is True
        assert result.data == {"id": 9}
        kwargs = post.call_args.kwargs
        assert post.call_args.args[0] == "https://api.brevo.com/v3/contacts"
        assert kwargs["headers"]["api-key"] == "chave"
        assert kwargs["json"]["attributes"] == {"NOME": "Ana", "WHATS": "11999999999", "ORIGEM": "Chat Tucan"}
        assert kwargs["json"]["listIds"] == [6]
        assert kwargs["json"]["updateEnabled"] is True

    def test_update_without_body(self):
        response = MagicMock(status_code=204, content=b"")

        with patch("tucan_chat.services.brevo_client.requests.post", return_value=response):
            result = BrevoClient(api_key="chave").upsert_contact("Ana", "11999999999")

        assert result.success is True
        assert result.data == {}

    def test_failure_is_reported_not_raised(self):
        with patch(
            "tucan_chat.services.brevo_client.requests.post",
            side_effect=requests.exceptions.ConnectionError("sem rede"),
        ):
            result = BrevoClient(api_key="chave").upsert_contact("Ana", "11999999999")

        assert result.success is False
        assert "sem rede" in result.error
