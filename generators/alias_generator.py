"""Search-alias generation: spellings, transliterations and English names of a concept."""

import logging
import os
from pathlib import Path
from typing import Optional

import anthropic

from generators.model_output import response_text

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"
DEFAULT_ALIAS_MODEL = "claude-3-5-haiku-latest"


class AliasGenerator:
    """Asks a small, fast model for the names a concept goes by."""

    def __init__(self, client: Optional[anthropic.AsyncAnthropic] = None, model: Optional[str] = None):
        self.client = client or anthropic.AsyncAnthropic()
        self.model = model or os.getenv("FACTORY_ALIAS_MODEL", DEFAULT_ALIAS_MODEL)
        self.template = (PROMPTS_DIR / "aliases.txt").read_text(encoding="utf-8")

    async def generate(self, concept: str) -> list[str]:
        """Aliases other than the concept itself. Empty list on any failure."""
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=300,
                temperature=0,
                messages=[{"role": "user", "content": self.template.format(concept=concept)}],
            )
        except anthropic.APIError as e:
            logger.warning("Alias generation failed for '%s': %s", concept, e)
            return []

        return parse_alias_list(response_text(response), concept)


def parse_alias_list(text: str, concept: str) -> list[str]:
    aliases = []
    for part in text.strip().split(","):
        alias = part.strip()
        if len(alias) >= 2 and alias != concept and alias not in aliases:
            aliases.append(alias)
    return aliases
