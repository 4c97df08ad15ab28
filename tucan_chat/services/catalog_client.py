"""
Cliente de busca no catálogo da loja (API de produtos)

Responsável por:
- Buscar produtos por termo livre
- Normalizar o retorno para {id, name, price, image, url}
"""
import os
from typing import Any, Dict, List, Optional
import httpx
from loguru import logger

from ..models import Product


MIN_TERM_CHARS = 2
MAX_LIMIT = 12


class CatalogError(Exception):
    """Falha na busca do catálogo (rede, status HTTP, payload inválido)"""


class CatalogClient:
    """Cliente assíncrono para a API de produtos"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        store_url: Optional[str] = None,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: URL da API (ou env CATALOG_API_URL)
            token: Token de acesso (ou env CATALOG_API_TOKEN)
            store_url: URL pública da loja para montar links (ou env CATALOG_STORE_URL)
            transport: Transport httpx alternativo (testes)
        """
        self.base_url = (base_url or os.getenv("CATALOG_API_URL") or "").rstrip("/")
        self.token = token or os.getenv("CATALOG_API_TOKEN")
        self.store_url = (store_url or os.getenv("CATALOG_STORE_URL") or "").rstrip("/")
        self.timeout = timeout
        self._transport = transport

        if not self.base_url:
            logger.warning("⚠️ CATALOG_API_URL não configurado - busca de produtos desabilitada")

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def _headers(self) -> Dict[str, str]:
        headers = {"User-Agent": "Tucan Chat (contato@tucanhome.com.br)"}
        if self.token:
            headers["Authentication"] = f"bearer {self.token}"
        return headers

    @staticmethod
    def _localized(value: Any) -> str:
        """Nomes podem vir como {"pt": "..."}"""
        if isinstance(value, dict):
            return str(value.get("pt") or next(iter(value.values()), "") or "")
        return str(value or "")

    @staticmethod
    def _to_price(value: Any) -> Optional[float]:
        if value in (None, ""):
            return None
        try:
            return float(str(value).replace(",", "."))
        except ValueError:
            return None

    def normalize_product(self, item: Dict[str, Any]) -> Optional[Product]:
        """
        Converte um item da API em Product.

        Returns:
            Product ou None se o item não tiver id/nome
        """
        product_id = item.get("id")
        name = self._localized(item.get("name"))
        if product_id is None or not name:
            return None

        price = self._to_price(item.get("price"))
        variants = [v for v in (item.get("variants") or []) if isinstance(v, dict)]
        if price is None and variants:
            price = self._to_price(variants[0].get("promotional_price") or variants[0].get("price"))

        image = item.get("image")
        images = item.get("images") or []
        if not image and images:
            # Imagens podem vir como {"src": ...} ou como URL direta
            first = images[0]
            image = first if isinstance(first, str) else (first.get("src") if isinstance(first, dict) else None)

        url = item.get("url") or item.get("canonical_url")
        handle = self._localized(item.get("handle"))
        if not url and handle and self.store_url:
            url = f"{self.store_url}/produtos/{handle}"

        return Product(id=str(product_id), name=name, price=price, image=image, url=url)

    async def search_strict(self, term: str, limit: int = 4) -> List[Product]:
        """
        Busca produtos propagando falhas.

        Raises:
            CatalogError: erro de rede, status HTTP ou payload inesperado
        """
        term = (term or "").strip()
        if not self.enabled or len(term) < MIN_TERM_CHARS:
            return []

        limit = max(1, min(int(limit), MAX_LIMIT))
        params = {"q": term, "per_page": limit}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.base_url}/products", params=params, headers=self._headers())
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CatalogError(f"busca '{term}' falhou: {e}") from e

        items = data.get("products", data.get("results")) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise CatalogError(f"payload inesperado do catálogo: {type(data).__name__}")

        products = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                product = self.normalize_product(item)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"⚠️ Item do catálogo ignorado (id={item.get('id')}): {e}")
                continue
            if product:
                products.append(product)

        logger.info(f"🔍 Catálogo: {len(products)} produto(s) para '{term}'")
        return products[:limit]

    async def search(self, term: str, limit: int = 4) -> List[Product]:
        """Busca produtos; nunca levanta exceção (falha → lista vazia)"""
        try:
            return await self.search_strict(term, limit)
        except CatalogError as e:
            logger.error(f"❌ Erro na busca do catálogo: {e}")
            return []
        except Exception as e:
            logger.exception(f"❌ Erro inesperado na busca do catálogo: {e}")
            return []
