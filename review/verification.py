"""Verification gate: may a freshly generated entry publish without a human?

An entry auto-verifies only when the fact-check confidence is at least 0.85,
its risk is not high, and it was written from a non-empty context bundle.
Anything else leaves it pending with `needsHumanReview` set. The only way from
pending to verified afterwards is a human approval (see `review.approval`).
"""

from dataclasses import dataclass

from schemas.concept_entry import ConceptEntry, RiskLevel, VerificationStatus
from schemas.fact_check import FactCheckResult

CONFIDENCE_THRESHOLD = 0.85


@dataclass(frozen=True)
class VerificationDecision:
    status: VerificationStatus
    reasons: tuple[str, ...] = ()

    @property
    def needs_human_review(self) -> bool:
        return self.status == VerificationStatus.PENDING


def decide_verification(confidence: float, risk: RiskLevel, has_context: bool) -> VerificationDecision:
    reasons = []
    if confidence < CONFIDENCE_THRESHOLD:
        reasons.append(f"confidence {confidence:.2f} below {CONFIDENCE_THRESHOLD}")
    if risk == RiskLevel.HIGH:
        reasons.append("high risk")
    if not has_context:
        reasons.append("no supporting context")

    if reasons:
        return VerificationDecision(VerificationStatus.PENDING, tuple(reasons))
    return VerificationDecision(VerificationStatus.VERIFIED)


def apply_fact_check(entry: ConceptEntry, result: FactCheckResult, has_context: bool) -> VerificationDecision:
    """Record the fact-check outcome and the gate decision on the entry."""
    decision = decide_verification(result.confidence_score, result.risk_level, has_context)
    entry.verification_status = decision.status
    entry.needs_human_review = decision.needs_human_review
    entry.confidence_score = result.confidence_score
    entry.risk_level = result.risk_level
    entry.unverified_claims = list(result.unverified_claims)
    return decision
