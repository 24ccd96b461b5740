"""
Message Provider - Corpus de mensajes de penalización y recordatorio.

El job nunca elige textos directamente: pide un mensaje por categoría a un
MessageProvider inyectado. Así los tests pueden verificar la categoría sin
depender del azar, y el corpus se puede cambiar o traducir sin tocar el job.
"""

import random
from abc import ABC, abstractmethod
from enum import Enum


class MessageCategory(str, Enum):
    """Categorías de mensajes."""
    PENALTY = "penalty"
    WORKOUT_MISSED = "workout_missed"


PENALTY_MESSAGES: tuple[str, ...] = (
    "🛋️ Your couch logged more reps than you did this week. Impressive, in the wrong way.",
    "🏋️ Your gym membership filed a missing person report. Please go reassure it.",
    "👟 Your running shoes have started a support group for neglected footwear.",
    "📉 Your step counter thinks it's broken. It isn't. You just didn't move.",
    "🧊 Your workout streak froze solid. Time to thaw it out next week.",
    "🦥 A sloth reviewed your week and said 'take it easy, buddy'.",
    "🎯 Your goals sent a postcard: 'Wish you were here'.",
    "🔋 Your motivation battery hit 1%. Plug it into a workout.",
    "🧦 Your gym bag has been packed since Monday. It's starting to smell like regret.",
    "🔥 That fire in your belly is down to a pilot light. Let's crank it back up.",
)

WORKOUT_MISSED_MESSAGES: tuple[str, ...] = (
    "💪 You came up short on points this week. Your group is counting on you!",
    "🤝 Your workout buddies noticed you were missing. Show up for them next week.",
    "🚀 New week, clean slate. Let's get those check-ins going!",
    "🧩 Every workout is a piece of the puzzle. Don't leave holes in the picture.",
    "📅 Consistency makes the group strong. Block out your workouts now.",
)

DEFAULT_CORPUS: dict[MessageCategory, tuple[str, ...]] = {
    MessageCategory.PENALTY: PENALTY_MESSAGES,
    MessageCategory.WORKOUT_MISSED: WORKOUT_MISSED_MESSAGES,
}


class MessageProvider(ABC):
    """Interface para elegir un mensaje de una categoría."""

    @abstractmethod
    def pick(self, category: MessageCategory) -> str:
        """Devuelve un mensaje de la categoría."""
        pass


class RandomMessageProvider(MessageProvider):
    """
    Elige uniformemente al azar dentro de un corpus fijo.

    Args:
        corpus: Mensajes por categoría (por defecto el corpus en inglés)
        rng: Generador aleatorio, inyectable para tests
    """

    def __init__(
        self,
        corpus: dict[MessageCategory, tuple[str, ...]] | None = None,
        rng: random.Random | None = None,
    ):
        self._corpus = corpus or DEFAULT_CORPUS
        self._rng = rng or random.Random()

        for category in MessageCategory:
            if not self._corpus.get(category):
                raise ValueError(f"Corpus vacío para la categoría '{category.value}'")

    def pick(self, category: MessageCategory) -> str:
        return self._rng.choice(self._corpus[category])
