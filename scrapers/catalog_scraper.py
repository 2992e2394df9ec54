"""Product catalog fetcher for the partner WooCommerce store.

Uses the authenticated WooCommerce REST API (v3) when consumer keys are
configured, which exposes attributes, tags and categories. Without keys it
falls back to the public Store API, which only exposes attribute names.
"""

import logging
import os
import re
from pathlib import Path
from typing import Optional

from encyclopedia.product_matcher import DEFAULT_CATALOG_PATH
from schemas.catalog_entry import CatalogEntry
from scrapers.utils import RateLimiter, fetch_url, save_json

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN = "https://cannabiz.co.il"
PER_PAGE = 100
V3_FIELDS = "id,name,slug,permalink,status,stock_status,attributes,categories,tags"


def extract_attributes(attributes: list[dict]) -> dict[str, str]:
    result = {}
    for attr in attributes:
        key = attr.get("slug") or re.sub(r"\s+", "_", attr.get("name", "").lower())
        value = attr.get("option")
        if value is None:
            value = ", ".join(attr.get("options") or [])
        if value:
            result[key] = value
    return result


def entry_from_v3(product: dict) -> CatalogEntry:
    return CatalogEntry(
        slug=product["slug"],
        name=product["name"],
        attributes=extract_attributes(product.get("attributes") or []),
        tags=[t["name"] for t in product.get("tags") or []],
        categories=[c["name"] for c in product.get("categories") or []],
        link=product.get("permalink", ""),
        stock_status=product.get("stock_status") or "instock",
    )


def entry_from_store_api(product: dict) -> CatalogEntry:
    attributes = {}
    for attr in product.get("attributes") or []:
        attributes[attr.get("taxonomy") or attr["name"]] = attr["name"]
    return CatalogEntry(
        slug=product["slug"],
        name=product["name"],
        attributes=attributes,
        link=product.get("permalink", ""),
        stock_status="instock",
    )


class CatalogScraper:
    def __init__(
        self,
        domain: Optional[str] = None,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        catalog_path=DEFAULT_CATALOG_PATH,
        delay: float = 2.0,
    ):
        self.domain = (domain or os.getenv("CANNABIZ_DOMAIN", DEFAULT_DOMAIN)).rstrip("/")
        self.consumer_key = consumer_key or os.getenv("CANNABIZ_WC_KEY", "")
        self.consumer_secret = consumer_secret or os.getenv("CANNABIZ_WC_SECRET", "")
        self.catalog_path = Path(catalog_path)
        self.rate_limiter = RateLimiter(min_delay=delay)

    @property
    def authenticated(self) -> bool:
        return bool(self.consumer_key and self.consumer_secret)

    def fetch_page(self, page: int) -> tuple[list[CatalogEntry], int]:
        if self.authenticated:
            url = f"{self.domain}/wp-json/wc/v3/products"
            params = {"per_page": PER_PAGE, "page": page, "status": "publish", "_fields": V3_FIELDS}
            auth = (self.consumer_key, self.consumer_secret)
            convert = entry_from_v3
        else:
            url = f"{self.domain}/wp-json/wc/store/v1/products"
            params = {"per_page": PER_PAGE, "page": page}
            auth = None
            convert = entry_from_store_api

        response = fetch_url(url, params=params, auth=auth, rate_limiter=self.rate_limiter)
        if response is None:
            return [], 0
        total_pages = int(response.headers.get("x-wp-totalpages", 0) or 0)
        return [convert(p) for p in response.json()], total_pages

    def scrape(self, limit: Optional[int] = None, skip_existing: bool = False) -> list[CatalogEntry]:
        if skip_existing and self.catalog_path.exists():
            logger.info("Catalog already exists at %s, skipping", self.catalog_path)
            return []

        logger.info(
            "Fetching catalog from %s (%s)",
            self.domain,
            "WooCommerce v3, authenticated" if self.authenticated else "public Store API",
        )
        catalog: list[CatalogEntry] = []
        page, total_pages = 1, 1
        while True:
            products, pages_header = self.fetch_page(page)
            if not products:
                break
            total_pages = pages_header or total_pages
            for product in products:
                if limit is not None and len(catalog) >= limit:
                    break
                catalog.append(product)
            logger.info("Page %d: %d products collected", page, len(catalog))

            if limit is not None and len(catalog) >= limit:
                break
            if page >= total_pages:
                break
            page += 1

        save_json([e.model_dump(mode="json", by_alias=True) for e in catalog], self.catalog_path)
        in_stock = sum(1 for e in catalog if e.in_stock)
        logger.info("Saved %d products (%d in stock) to %s", len(catalog), in_stock, self.catalog_path)
        return catalog
