"""Expand a concept name and its aliases into matchable search terms.

Handles the shapes aliases take in practice: parenthetical synonyms
("קנבידיול (CBD)"), dash-separated glosses ("THC - טטרהידרוקנבינול") and
slash variants ("indica/sativa"). Every derived term is expanded again, so the
output is closed under expansion.
"""

import re

MIN_TERM_LENGTH = 2

_PARENTHETICAL = re.compile(r"\(([^)]+)\)")
_SEPARATORS = (" - ", "/")


def _variants(term: str) -> list[str]:
    """Terms directly derivable from one normalized term."""
    variants = []

    match = _PARENTHETICAL.search(term)
    if match:
        variants.append(match.group(1).strip())
        variants.append(_PARENTHETICAL.sub("", term, count=1).strip())

    for separator in _SEPARATORS:
        if separator in term:
            variants.extend(part.strip() for part in term.split(separator))

    return variants


def expand_terms(raw_terms) -> list[str]:
    """Normalize and expand raw names/aliases into a deduplicated term list.

    Args:
        raw_terms: Iterable of concept names and aliases, in any case.

    Returns:
        Lowercased, trimmed terms of at least two characters, in the order they
        were first derived.
    """
    seen: dict[str, None] = {}
    pending = []

    for raw in raw_terms:
        if not raw:
            continue
        term = raw.lower().strip()
        if len(term) >= MIN_TERM_LENGTH:
            pending.append(term)

    while pending:
        term = pending.pop(0)
        if len(term) < MIN_TERM_LENGTH or term in seen:
            continue
        seen[term] = None
        pending.extend(_variants(term))

    return list(seen)
