"""Match an entry's search aliases against the commerce catalog.

The catalog is read from disk on every call so matches always reflect the
latest snapshot. Among the qualifying products a deterministic shuffle picks
the displayed few, so pages vary without the output depending on time or
randomness.
"""

import logging
from pathlib import Path

import orjson
from pydantic import TypeAdapter, ValidationError

from schemas.catalog_entry import CatalogEntry, MatchedProduct

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent.parent / "data" / "cannabiz-catalog.json"

FLOWER_CATEGORIES = ["תפרחות", "flowers", "פרחים"]
MAX_PRODUCTS = 4

ATTRIBUTE_HIT_SCORE = 10
TAG_HIT_SCORE = 8
TAG_SCORE_STOP = 18
NAME_HIT_SCORE = 3
FLOWER_BONUS = 5

_catalog_adapter = TypeAdapter(list[CatalogEntry])


def load_catalog(catalog_path=DEFAULT_CATALOG_PATH) -> list[CatalogEntry]:
    """Read the catalog snapshot. Missing or unreadable files yield an empty catalog."""
    path = Path(catalog_path)
    if not path.exists():
        return []
    try:
        return _catalog_adapter.validate_python(orjson.loads(path.read_bytes()))
    except (orjson.JSONDecodeError, ValidationError, OSError) as e:
        logger.warning("Could not read catalog %s: %s", path, e)
        return []


def score_product(entry: CatalogEntry, queries: list[str]) -> int:
    score = 0

    for value in entry.attributes.values():
        value_lower = value.lower()
        if any(q in value_lower for q in queries):
            score += ATTRIBUTE_HIT_SCORE
            break

    for tag in entry.tags:
        tag_lower = tag.lower()
        if any(q in tag_lower for q in queries):
            score += TAG_HIT_SCORE
        if score >= TAG_SCORE_STOP:
            break

    name_lower = entry.name.lower()
    if any(q in name_lower for q in queries):
        score += NAME_HIT_SCORE

    if score == 0:
        return 0

    if any(fc in c.lower() for c in entry.categories for fc in FLOWER_CATEGORIES):
        score += FLOWER_BONUS
    return score


def stable_display_diversifier(pool: list[tuple[CatalogEntry, int]]) -> list[tuple[CatalogEntry, int]]:
    """Fisher-Yates-shaped shuffle driven by score and position instead of randomness.

    The same (score, position) sequence always produces the same order.
    """
    shuffled = list(pool)
    for i in range(len(shuffled) - 1, 0, -1):
        j = (shuffled[i][1] * 31 + i * 17) % (i + 1)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def find_products(
    search_aliases: list[str],
    catalog_path=DEFAULT_CATALOG_PATH,
    limit: int = MAX_PRODUCTS,
) -> list[MatchedProduct]:
    queries = [q for q in (a.lower().strip() for a in search_aliases) if len(q) >= 2]
    if not queries:
        return []

    scored = []
    for entry in load_catalog(catalog_path):
        if not entry.in_stock:
            continue
        score = score_product(entry, queries)
        if score > 0:
            scored.append((entry, score))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    pool = stable_display_diversifier(scored[: limit * 2])

    return [
        MatchedProduct(
            slug=entry.slug,
            name=entry.name,
            attributes=entry.attributes,
            tags=entry.tags,
            categories=entry.categories,
            link=entry.link,
        )
        for entry, _ in pool[:limit]
    ]
