from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

from ..config import Settings, get_settings
from ..exceptions import SourceUnavailableError
from ..log import log_catalog_tier
from ..schemas.product import Product
from ..utils.fallback import first_success
from .normalizer import normalize_product, normalize_products
from .seed import seed_products
from .synthetic import synthetic_products

logger = logging.getLogger(__name__)

TIER_PAYMENT_INFO = "payment-info"
TIER_QUESTIONS = "questions"
TIER_SUBMISSIONS = "submissions"
TIER_SYNTHETIC = "synthetic"

PRODUCT_FIELD_TYPES = {"control_payment", "control_products"}
EMBEDDED_PRODUCT_KEYS = ("products", "paymentProducts")

BACKUP_DATA_WARNING = "Failed to fetch products. Using backup data."


@dataclass
class SourceCatalog:
    source_id: str
    tier: Optional[str]
    products: list[Product] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class CatalogLoadResult:
    products: list[Product]
    sources: list[SourceCatalog] = field(default_factory=list)
    used_seed: bool = False
    warning: Optional[str] = None


def source_prefix(position: int) -> str:
    """Id namespace for the source at ``position``; the primary source has none."""
    if position == 0:
        return ""
    return f"form{position + 1}-"


def _ensure_unique_ids(products: list[Product]) -> list[Product]:
    seen: set[str] = set()
    unique: list[Product] = []
    for product in products:
        new_id = product.id
        suffix = 1
        while new_id in seen:
            suffix += 1
            new_id = f"{product.id}-{suffix}"
        seen.add(new_id)
        if new_id != product.id:
            logger.warning("Duplicate product id %s renamed to %s", product.id, new_id)
            product = product.model_copy(update={"id": new_id})
        unique.append(product)
    return unique


def merge_catalogs(catalogs: Iterable[list[Product]]) -> list[Product]:
    merged: list[Product] = []
    for position, products in enumerate(catalogs):
        prefix = source_prefix(position)
        for product in products:
            if prefix:
                product = product.model_copy(update={"id": f"{prefix}{product.id}"})
            merged.append(product)
    return _ensure_unique_ids(merged)


def products_from_payment_info(content: Any) -> list[Product]:
    if not isinstance(content, dict):
        return []
    if isinstance(content.get("products"), list):
        return normalize_products(content["products"])
    answers = content.get("answers")
    if isinstance(answers, dict):
        for answer in answers.values():
            if not isinstance(answer, dict):
                continue
            if not any(key in answer for key in EMBEDDED_PRODUCT_KEYS):
                continue
            items = answer.get("paymentProducts") or answer.get("products") or []
            return normalize_products(items) if isinstance(items, list) else []
    return []


def _is_product_field(descriptor: Any) -> bool:
    if not isinstance(descriptor, dict):
        return False
    if descriptor.get("type") in PRODUCT_FIELD_TYPES:
        return True
    return "productList" in str(descriptor.get("name") or "")


def products_from_questions(content: Any) -> list[Product]:
    if isinstance(content, dict):
        descriptors = list(content.values())
    elif isinstance(content, list):
        descriptors = content
    else:
        return []
    products: list[Product] = []
    for descriptor in descriptors:
        if not _is_product_field(descriptor):
            continue
        entries = descriptor.get("products")
        if isinstance(entries, list):
            products.extend(normalize_products(entries, start_index=len(products)))
    return products


def products_from_submissions(content: Any) -> list[Product]:
    if not isinstance(content, list):
        return []
    products: list[Product] = []
    seen_names: set[str] = set()
    for submission in content:
        answers = submission.get("answers") if isinstance(submission, dict) else None
        if not isinstance(answers, dict):
            continue
        for answer in answers.values():
            if not isinstance(answer, dict):
                continue
            for key in EMBEDDED_PRODUCT_KEYS:
                entries = answer.get(key)
                if not isinstance(entries, list):
                    continue
                for entry in entries:
                    if not isinstance(entry, dict):
                        continue
                    product = normalize_product(entry, len(products))
                    if product.name in seen_names:
                        continue
                    seen_names.add(product.name)
                    products.append(product)
    return products


class CatalogPipeline:
    """Fetch, normalize and merge product catalogs from several sources.

    Each source walks the tiers payment-info, questions, submissions and
    synthetic until one yields products. ``load`` never raises; when nothing
    produces a product with a real image the static seed list is returned
    with a warning.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._transport = transport

    async def fetch_catalog(self, source_ids: Optional[list[str]] = None) -> list[Product]:
        result = await self.load(source_ids)
        return result.products

    async def load(self, source_ids: Optional[list[str]] = None) -> CatalogLoadResult:
        ids = list(source_ids) if source_ids is not None else list(self.settings.source_ids)
        try:
            if self._client is not None:
                sources = await self._fetch_all(self._client, ids)
            else:
                async with self._build_client() as client:
                    sources = await self._fetch_all(client, ids)
            products = merge_catalogs(source.products for source in sources)
        except Exception:
            logger.exception("Catalog acquisition failed; using seed catalog")
            sources = []
            products = []

        if not any(product.has_real_image for product in products):
            logger.warning("No displayable products from %s sources; using seed catalog", len(ids))
            return CatalogLoadResult(
                products=seed_products(),
                sources=sources,
                used_seed=True,
                warning=BACKUP_DATA_WARNING,
            )
        return CatalogLoadResult(products=products, sources=sources)

    async def fetch_source(self, client: httpx.AsyncClient, source_id: str) -> SourceCatalog:
        strategies = [
            (TIER_PAYMENT_INFO, lambda: self._fetch_payment_info(client, source_id)),
            (TIER_QUESTIONS, lambda: self._fetch_questions(client, source_id)),
            (TIER_SUBMISSIONS, lambda: self._fetch_submissions(client, source_id)),
        ]
        if self.settings.synthetic_fallback:
            strategies.append((TIER_SYNTHETIC, lambda: self._fetch_synthetic(source_id)))

        def _record(tier: str, value: Any, exc: Optional[BaseException]) -> None:
            count = len(value) if isinstance(value, list) else 0
            log_catalog_tier(
                source_id,
                tier,
                ok=exc is None and count > 0,
                product_count=count,
                error=str(exc) if exc else None,
            )

        result = await first_success(strategies, accept=bool, on_attempt=_record)
        if not result.ok:
            logger.warning("Every tier failed for source %s: %s", source_id, result.error)
            return SourceCatalog(source_id=source_id, tier=None, errors=result.errors)
        return SourceCatalog(
            source_id=source_id,
            tier=result.label,
            products=list(result.value or []),
            errors=result.errors,
        )

    async def _fetch_all(self, client: httpx.AsyncClient, source_ids: list[str]) -> list[SourceCatalog]:
        return list(await asyncio.gather(*(self.fetch_source(client, source_id) for source_id in source_ids)))

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout_seconds,
            transport=self._transport,
        )

    async def _get_content(self, client: httpx.AsyncClient, source_id: str, tier: str) -> Any:
        params = {"apiKey": self.settings.api_key} if self.settings.api_key else None
        try:
            response = await client.get(f"/form/{source_id}/{tier}", params=params)
        except httpx.HTTPError as exc:
            raise SourceUnavailableError(f"{tier} request failed: {exc}", source_id=source_id, tier=tier) from exc
        if response.status_code >= 400:
            raise SourceUnavailableError(
                f"{tier} returned HTTP {response.status_code}", source_id=source_id, tier=tier
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise SourceUnavailableError(f"{tier} returned invalid JSON", source_id=source_id, tier=tier) from exc
        if not isinstance(payload, dict) or payload.get("content") is None:
            raise SourceUnavailableError(f"{tier} response has no content", source_id=source_id, tier=tier)
        return payload["content"]

    async def _fetch_payment_info(self, client: httpx.AsyncClient, source_id: str) -> list[Product]:
        content = await self._get_content(client, source_id, TIER_PAYMENT_INFO)
        return products_from_payment_info(content)

    async def _fetch_questions(self, client: httpx.AsyncClient, source_id: str) -> list[Product]:
        content = await self._get_content(client, source_id, TIER_QUESTIONS)
        return products_from_questions(content)

    async def _fetch_submissions(self, client: httpx.AsyncClient, source_id: str) -> list[Product]:
        content = await self._get_content(client, source_id, TIER_SUBMISSIONS)
        return products_from_submissions(content)

    async def _fetch_synthetic(self, source_id: str) -> list[Product]:
        return synthetic_products(source_id)


class CatalogSession:
    """Holds the catalog for one view and drops results that arrive too late.

    Every ``refresh`` takes a generation token. A load that finishes after a
    newer refresh started, or after ``close``, is discarded.
    """

    def __init__(self, pipeline: CatalogPipeline, source_ids: Optional[list[str]] = None) -> None:
        self.pipeline = pipeline
        self.source_ids = source_ids
        self.products: list[Product] = []
        self.warning: Optional[str] = None
        self.loading = False
        self._generation = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def refresh(self) -> bool:
        if self._closed:
            return False
        self._generation += 1
        token = self._generation
        self.loading = True
        result = await self.pipeline.load(self.source_ids)
        if self._closed or token != self._generation:
            logger.info("Discarding superseded catalog load (generation %s)", token)
            return False
        self.products = result.products
        self.warning = result.warning
        self.loading = False
        return True

    def close(self) -> None:
        self._closed = True
        self.loading = False


__all__ = [
    "TIER_PAYMENT_INFO",
    "TIER_QUESTIONS",
    "TIER_SUBMISSIONS",
    "TIER_SYNTHETIC",
    "BACKUP_DATA_WARNING",
    "SourceCatalog",
    "CatalogLoadResult",
    "source_prefix",
    "merge_catalogs",
    "products_from_payment_info",
    "products_from_questions",
    "products_from_submissions",
    "CatalogPipeline",
    "CatalogSession",
]
