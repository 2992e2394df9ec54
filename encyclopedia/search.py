"""Weighted substring search over published entries.

Title matches dominate, then names (medical and alternate), subtitle, BLUF
points, and finally body text occurrences.
"""

from dataclasses import dataclass, field

from schemas.concept_entry import ConceptEntry

WEIGHT_EXACT_TITLE = 200
WEIGHT_PARTIAL_TITLE = 80
WEIGHT_EXACT_ALT_NAME = 150
WEIGHT_PARTIAL_ALT_NAME = 60
WEIGHT_MEDICAL_NAME = 100
PARTIAL_MEDICAL_NAME_FACTOR = 0.6
WEIGHT_SUBTITLE = 30
WEIGHT_BLUF = 15
WEIGHT_BODY = 5
MAX_BODY_OCCURRENCES = 5


@dataclass
class SearchableConcept:
    slug: str
    title: str
    subtitle: str = ""
    category: str = ""
    medical_name: str = ""
    alternate_names: list[str] = field(default_factory=list)
    bluf_points: list[str] = field(default_factory=list)
    body_text: str = ""

    @classmethod
    def from_entry(cls, entry: ConceptEntry) -> "SearchableConcept":
        body_parts = []
        for section in entry.sections:
            body_parts.append(section.content)
            body_parts.extend(sub.content for sub in section.subsections)
        for faq in entry.faqs:
            body_parts.extend([faq.question, faq.answer])

        return cls(
            slug=entry.slug,
            title=entry.title,
            subtitle=entry.subtitle,
            category=entry.category,
            medical_name=entry.structured_data.medical_name,
            alternate_names=list(entry.structured_data.alternate_name),
            bluf_points=list(entry.bluf.points),
            body_text=" ".join(body_parts),
        )


def score_concept(concept: SearchableConcept, query: str) -> float:
    """Relevance of one concept. `query` must already be lowercased and trimmed."""
    q = query
    score = 0.0

    title = concept.title.lower()
    if title == q or title.startswith(q + " ") or f"({q})" in title:
        score += WEIGHT_EXACT_TITLE
    elif q in title:
        score += WEIGHT_PARTIAL_TITLE

    medical_name = concept.medical_name.lower()
    if medical_name == q:
        score += WEIGHT_MEDICAL_NAME
    elif q in medical_name:
        score += WEIGHT_MEDICAL_NAME * PARTIAL_MEDICAL_NAME_FACTOR

    for alt in concept.alternate_names:
        alt_lower = alt.lower()
        if alt_lower == q:
            score += WEIGHT_EXACT_ALT_NAME
            break
        if q in alt_lower:
            score += WEIGHT_PARTIAL_ALT_NAME
            break

    if q in concept.subtitle.lower():
        score += WEIGHT_SUBTITLE

    score += sum(1 for p in concept.bluf_points if q in p.lower()) * WEIGHT_BLUF

    body = concept.body_text.lower()
    if score == 0 or q in body:
        score += min(body.count(q), MAX_BODY_OCCURRENCES) * WEIGHT_BODY

    return score


def search_concepts(concepts: list[SearchableConcept], query: str) -> list[tuple[SearchableConcept, float]]:
    q = query.strip().lower()
    if not q:
        return []
    results = [(concept, score_concept(concept, q)) for concept in concepts]
    results = [r for r in results if r[1] > 0]
    results.sort(key=lambda r: r[1], reverse=True)
    return results
