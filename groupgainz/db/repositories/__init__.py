"""Repositories para acceso a datos."""

from groupgainz.db.repositories.settlement import SettlementRepository

__all__ = [
    "SettlementRepository",
]
