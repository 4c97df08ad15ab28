"""
Testes do cliente de catálogo com httpx.MockTransport
"""
import asyncio

import httpx
import pytest

from tucan_chat.services.catalog_client import CatalogClient, CatalogError


API = "https://api.catalogo.example/v1/123"

PRODUCTS_PAYLOAD = [
    {
        "id": 101,
        "name": {"pt": "Pendente Gota Branco"},
        "handle": {"pt": "pendente-gota-branco"},
        "variants": [{"price": "189.90", "promotional_price": None}],
        "images": [{"src": "https://cdn.example/gota.jpg"}],
    },
    {
        "id": 102,
        "name": "Vaso Onda Terracota",
        "price": 79.5,
        "image": "https://cdn.example/onda.jpg",
        "canonical_url": "https://loja.example/produtos/vaso-onda",
    },
    {"id": None, "name": "sem id"},
]


def make_client(handler, **kwargs):
    return CatalogClient(
        base_url=API,
        token="tok",
        store_url="https://loja.example",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestSearch:
    def test_normalizes_products(self):
        requests_seen = []

        def handler(request):
            requests_seen.append(request)
            return httpx.Response(200, json=PRODUCTS_PAYLOAD)

        products = asyncio.run(make_client(handler).search("pendente", limit=4))

        assert [p.id for p in products] == ["101", "102"]
        gota, vaso = products
        assert gota.name == "Pendente Gota Branco"
        assert gota.price == pytest.approx(189.9)
        assert gota.image == "https://cdn.example/gota.jpg"
        assert gota.url == "https://loja.example/produtos/pendente-gota-branco"
        assert vaso.url == "https://loja.example/produtos/vaso-onda"

        request = requests_seen[0]
        assert request.url.path.endswith("/products")
        assert request.url.params["q"] == "pendente"
        assert request.url.params["per_page"] == "4"
        assert request.headers["Authentication"] == "bearer tok"

    def test_wrapped_payload(self):
        def handler(request):
            return httpx.Response(200, json={"products": PRODUCTS_PAYLOAD[:1]})

        products = asyncio.run(make_client(handler).search("pendente"))
        assert len(products) == 1

    def test_string_images_and_loose_variants(self):
        payload = [{
            "id": 103,
            "name": "Arandela Meia Lua",
            "variants": ["sem-detalhe", {"price": "129,00"}],
            "images": ["https://cdn.example/meia-lua.jpg"],
            "url": "https://loja.example/produtos/meia-lua",
        }]

        def handler(request):
            return httpx.Response(200, json=payload)

        [arandela] = asyncio.run(make_client(handler).search("arandela"))
        assert arandela.image == "https://cdn.example/meia-lua.jpg"
        assert arandela.price == pytest.approx(129.0)

    def test_malformed_item_is_skipped(self):
        payload = [{"id": 201, "name": "Quebrado", "images": 5}, PRODUCTS_PAYLOAD[0]]

        def handler(request):
            return httpx.Response(200, json=payload)

        products = asyncio.run(make_client(handler).search_strict("pendente"))
        assert [p.id for p in products] == ["101"]

    def test_limit_is_clamped(self):
        seen = []

        def handler(request):
            seen.append(request.url.params["per_page"])
            return httpx.Response(200, json=[])

        asyncio.run(make_client(handler).search("vaso", limit=100))
        assert seen == ["12"]

    def test_short_term_skips_request(self):
        def handler(request):
            raise AssertionError("não deveria chamar a API")

        assert asyncio.run(make_client(handler).search(" a ")) == []

    def test_disabled_client_returns_empty(self, monkeypatch):
        monkeypatch.delenv("CATALOG_API_URL", raising=False)
        client = CatalogClient(base_url="")
        assert client.enabled is False
        assert asyncio.run(client.search("pendente")) == []


class TestFailures:
    def test_http_error_becomes_empty_list(self):
        def handler(request):
            return httpx.Response(503, json={"error": "fora do ar"})

        assert asyncio.run(make_client(handler).search("pendente")) == []

    def test_strict_search_raises(self):
        def handler(request):
            return httpx.Response(500)

        with pytest.raises(CatalogError):
            asyncio.run(make_client(handler).search_strict("pendente"))

    def test_network_error_raises_on_strict(self):
        def handler(request):
            raise httpx.ConnectError("sem rede", request=request)

        with pytest.raises(CatalogError):
            asyncio.run(make_client(handler).search_strict("pendente"))

    def test_unexpected_payload_raises_on_strict(self):
        def handler(request):
            return httpx.Response(200, json={"message": "ok"})

        with pytest.raises(CatalogError):
            asyncio.run(make_client(handler).search_strict("pendente"))
