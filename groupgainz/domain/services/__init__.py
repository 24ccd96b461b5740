"""
Domain Services - Lógica del settlement semanal.

Estos servicios encapsulan la lógica de negocio del cierre semanal y solo
acceden a datos a través de ISettlementRepository.
"""

from groupgainz.domain.services.messages import (
    MessageCategory,
    MessageProvider,
    RandomMessageProvider,
)
from groupgainz.domain.services.settlement_service import (
    RunReporter,
    SettlementService,
    evaluate,
)

__all__ = [
    "MessageCategory",
    "MessageProvider",
    "RandomMessageProvider",
    "RunReporter",
    "SettlementService",
    "evaluate",
]
