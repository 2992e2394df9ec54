"""Pydantic models for the claim-level fact-check exchange."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from schemas.concept_entry import RiskLevel


class FactCheckClaim(BaseModel):
    claim: str
    verified: bool
    source: str = Field(default="", description="Name of the supporting source, if any")
    note: str = ""


class FactCheckResponse(BaseModel):
    """The structured output the fact-check model must return."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    claims: List[FactCheckClaim] = Field(default_factory=list)
    confidence_score: float
    unverified_claims: List[str] = Field(default_factory=list)


class FactCheckResult(BaseModel):
    confidence_score: float = Field(ge=0.0, le=1.0)
    risk_level: RiskLevel
    claims: List[FactCheckClaim] = Field(default_factory=list)
    unverified_claims: List[str] = Field(default_factory=list)
    failed: bool = Field(False, description="True when the check itself could not run")
