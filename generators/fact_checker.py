"""Claim-level fact-check gate for drafted entries.

Risk is classified locally from the category and the entry text; the claim
check itself is delegated to the model. The gate fails closed: if the check
cannot be completed for any reason, the entry is reported as high risk with a
mid confidence score and a manual-review placeholder claim, which keeps it
out of auto-publication.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import anthropic

from generators.alias_generator import DEFAULT_ALIAS_MODEL
from generators.model_output import parse_model_output, response_text
from schemas.concept_entry import ConceptEntry, RiskLevel
from schemas.fact_check import FactCheckResponse, FactCheckResult

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent / "prompts"

HIGH_RISK_CATEGORIES = {
    "regulation-in-israel",
    "medical-indications",
    "side-effects-and-risks",
    "drug-drug-interactions",
}

HIGH_RISK_KEYWORDS = [
    "רגולציה", "משפט", "חוק", "רפואי", "אסדרה", "קנס", "עונש",
    "משרד הבריאות", 'יק"ר', "רישיון",
    "regulation", "law", "legal", "medical", "penalty", "fine",
]

MEDIUM_RISK_KEYWORDS = [
    "מחקר", "מדעי", "ניסוי קליני", "היסטוריה",
    "research", "clinical", "study",
]

FAILED_CHECK_CONFIDENCE = 0.5
FAILED_CHECK_CLAIM = "Fact-check process failed: manual review required"


def entry_text(value) -> str:
    """All string values of a serialized entry, without its field names."""
    if isinstance(value, dict):
        return "\n".join(entry_text(v) for v in value.values())
    if isinstance(value, list):
        return "\n".join(entry_text(v) for v in value)
    return value if isinstance(value, str) else ""


def classify_risk(category_slug: str, text: str) -> RiskLevel:
    if category_slug in HIGH_RISK_CATEGORIES:
        return RiskLevel.HIGH

    text = text.lower()
    if any(keyword in text for keyword in HIGH_RISK_KEYWORDS):
        return RiskLevel.HIGH
    if any(keyword in text for keyword in MEDIUM_RISK_KEYWORDS):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def serialize_entry(entry: ConceptEntry) -> str:
    return json.dumps(entry.to_json_dict(), ensure_ascii=False, indent=2)


def failed_check_result() -> FactCheckResult:
    return FactCheckResult(
        confidence_score=FAILED_CHECK_CONFIDENCE,
        risk_level=RiskLevel.HIGH,
        unverified_claims=[FAILED_CHECK_CLAIM],
        failed=True,
    )


class FactChecker:
    """Second-pass verification of a drafted entry against its context bundle."""

    def __init__(self, client: Optional[anthropic.AsyncAnthropic] = None, model: Optional[str] = None):
        self.client = client or anthropic.AsyncAnthropic()
        self.model = model or os.getenv("FACTORY_ALIAS_MODEL", DEFAULT_ALIAS_MODEL)
        self.template = (PROMPTS_DIR / "fact_check.txt").read_text(encoding="utf-8")

    async def check(self, entry: ConceptEntry, context_text: str) -> FactCheckResult:
        entry_json = serialize_entry(entry)
        risk = classify_risk(entry.category_slug, entry_text(entry.to_json_dict()))

        prompt = self.template.format(
            entry_json=entry_json,
            context=context_text or "(לא סופקו מקורות)",
        )
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=4096,
                temperature=0.1,
                messages=[{"role": "user", "content": prompt}],
            )
            parsed = parse_model_output(response_text(response), FactCheckResponse)
        except Exception as e:
            logger.warning("Fact-check failed for '%s', forcing manual review: %s", entry.title, e)
            return failed_check_result()

        confidence = max(0.0, min(1.0, parsed.confidence_score))
        logger.info(
            "Fact-check '%s': confidence=%.2f risk=%s claims=%d unverified=%d",
            entry.title,
            confidence,
            risk.value,
            len(parsed.claims),
            len(parsed.unverified_claims),
        )
        return FactCheckResult(
            confidence_score=confidence,
            risk_level=risk,
            claims=parsed.claims,
            unverified_claims=parsed.unverified_claims,
        )
