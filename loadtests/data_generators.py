"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the domain's validation rules
(half-star ratings in range, tags from the subject's vocabulary, comment
length) and match the exact field names expected by the API's Pydantic
request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker("pt_PT")

SUPPLIER_TAGS = [
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
]

CLIENT_TAGS = [
    "Respeitoso",
    "Comunicativo",
    "Pagamento pontual",
    "Detalhes precisos",
    "Recomendaria",
    "Organizado",
    "Amigável",
    "Instruções claras",
]

SERVICE_CATEGORIES = ["Fotografia", "Catering", "DJ", "Decoração", "Bolo", "Música ao vivo"]


def party_id(prefix: str) -> str:
    """Generate party IDs like 'client-lt-a1b2c3d4'."""
    return f"{prefix}-lt-{uuid.uuid4().hex[:8]}"


def booking_data() -> dict:
    """A completed booking between a fresh client and supplier."""
    return {
        "booking_id": f"bk-lt-{uuid.uuid4().hex[:12]}",
        "client_id": party_id("client"),
        "supplier_id": party_id("supplier"),
        "service_category": random.choice(SERVICE_CATEGORIES),
        "event_date": fake.date_between(start_date="-60d", end_date="today").isoformat(),
    }


def rating() -> float:
    """Half-star rating skewed towards the top, like real reviews."""
    return random.choice([5.0, 5.0, 4.5, 4.5, 4.0, 4.0, 3.5, 3.0, 2.0, 1.0])


def review_comment() -> str:
    return fake.paragraph(nb_sentences=2)[:500]


def tags_for(subject_role: str) -> list[str]:
    vocabulary = SUPPLIER_TAGS if subject_role == "Supplier" else CLIENT_TAGS
    return random.sample(vocabulary, k=random.randint(0, 3))


def photo_refs() -> list[str]:
    return [f"reviews/{uuid.uuid4().hex}.jpg" for _ in range(random.randint(0, 2))]


def response_text() -> str:
    return fake.sentence(nb_words=12)


def flag_reason() -> str:
    return random.choice(["Conteúdo ofensivo", "Informação falsa", "Não corresponde ao serviço"])
