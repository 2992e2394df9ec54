"""Load the magazine archive (one JSON file per post) into memory."""

import logging
from pathlib import Path
from typing import Optional

import orjson
from pydantic import ValidationError

from processors.quality_filter import ArchiveQualityFilter
from schemas.archive_article import ArchiveArticle

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_DIR = Path(__file__).parent.parent / "data" / "magazine-archive"


def load_archive(
    archive_dir=DEFAULT_ARCHIVE_DIR,
    quality_filter: Optional[ArchiveQualityFilter] = None,
) -> list[ArchiveArticle]:
    """Read every post file in filename order, skipping malformed ones.

    Returns an empty corpus when the directory does not exist.
    """
    path = Path(archive_dir)
    if not path.is_dir():
        logger.warning("Archive directory not found: %s", path)
        return []

    articles = []
    malformed = 0
    for post_file in sorted(path.glob("*.json")):
        try:
            articles.append(ArchiveArticle.model_validate(orjson.loads(post_file.read_bytes())))
        except (orjson.JSONDecodeError, ValidationError, OSError) as e:
            malformed += 1
            logger.debug("Skipping malformed archive file %s: %s", post_file.name, e)

    if malformed:
        logger.info("Skipped %d malformed archive files", malformed)

    quality_filter = quality_filter or ArchiveQualityFilter()
    return quality_filter.filter(articles)
