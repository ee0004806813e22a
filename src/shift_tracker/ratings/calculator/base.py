from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable

from ...core.enums import RatingStatus


class RatingCalculator(ABC):
    """Calculator interface (Strategy Pattern for ratings)."""

    @abstractmethod
    def compute(self, penalties: Iterable[Decimal]) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def status_for(self, rating: Decimal) -> RatingStatus:
        raise NotImplementedError
