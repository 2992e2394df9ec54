"""Encyclopedia entry drafting.

Builds the drafting prompt from the concept, its category and the combined
context bundle (or the no-context instructions when every channel came back
empty), calls Claude, and validates the response against `ConceptDraft`.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import anthropic

from generators.model_output import parse_model_output, response_text
from schemas.concept_entry import ConceptDraft

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"
DEFAULT_MODEL = "claude-sonnet-4-20250514"


class ConceptGenerator:
    """Drafts one encyclopedia entry per call."""

    def __init__(
        self,
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: Optional[str] = None,
        max_tokens: int = 8192,
    ):
        self.client = client or anthropic.AsyncAnthropic()
        self.model = model or os.getenv("FACTORY_MODEL", DEFAULT_MODEL)
        self.max_tokens = max_tokens

        self.system_prompt = (PROMPTS_DIR / "system_prompt.txt").read_text(encoding="utf-8")
        self.concept_template = (PROMPTS_DIR / "concept_prompt.txt").read_text(encoding="utf-8")
        self.context_template = (PROMPTS_DIR / "context_available.txt").read_text(encoding="utf-8")
        self.no_context_text = (PROMPTS_DIR / "no_context.txt").read_text(encoding="utf-8")
        self.schema_text = (PROMPTS_DIR / "concept_schema.txt").read_text(encoding="utf-8")

    def build_prompt(self, name: str, category_slug: str, context: str) -> str:
        if context:
            context_block = self.context_template.format(context=context)
        else:
            context_block = self.no_context_text
        return self.concept_template.format(
            name=name,
            category_slug=category_slug,
            context_block=context_block.strip(),
            schema=self.schema_text.strip(),
        )

    async def generate(self, name: str, category_slug: str, context: str) -> ConceptDraft:
        """Draft an entry.

        Raises:
            ModelOutputSyntaxError: the response is not JSON.
            ModelOutputSchemaError: the JSON does not match the entry schema.
            anthropic.APIError: the API call itself failed.
        """
        logger.info(
            "Drafting '%s' (%s) with %d characters of context",
            name,
            category_slug,
            len(context),
        )
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=self.system_prompt,
            messages=[{"role": "user", "content": self.build_prompt(name, category_slug, context)}],
        )
        return parse_model_output(response_text(response), ConceptDraft)
