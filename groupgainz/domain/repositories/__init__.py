"""Domain Repositories - Interfaces de persistencia."""

from groupgainz.domain.repositories.base import ISettlementRepository

__all__ = [
    "ISettlementRepository",
]
