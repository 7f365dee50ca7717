"""Controlled tag vocabularies.

Tags describe the party being reviewed, so the vocabulary is chosen by the
subject's role: clients tag suppliers with service qualities, suppliers
tag clients with conduct qualities.
"""

SUPPLIER_TAGS = (
    "Profissional",
    "Pontual",
    "Qualidade excelente",
    "Boa comunicação",
    "Bom valor",
    "Criativo",
    "Flexível",
    "Amigável",
    "Organizado",
    "Superou expectativas",
)

CLIENT_TAGS = (
    "Respeitoso",
    "Comunicativo",
    "Pagamento pontual",
    "Detalhes precisos",
    "Recomendaria",
    "Organizado",
    "Amigável",
    "Instruções claras",
)

_VOCABULARIES = {
    "Supplier": SUPPLIER_TAGS,
    "Client": CLIENT_TAGS,
}


def vocabulary_for(subject_role: str) -> tuple[str, ...]:
    return _VOCABULARIES.get(subject_role, ())


def unknown_tags(tags, subject_role: str) -> list[str]:
    """Return the tags that are not part of the subject role's vocabulary."""
    allowed = set(vocabulary_for(subject_role))
    return [tag for tag in tags if tag not in allowed]


def normalize_tags(tags) -> list[str]:
    """Strip whitespace and collapse duplicates, keeping first-seen order."""
    seen = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen
