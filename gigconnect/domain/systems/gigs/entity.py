"""Entidade Gig — a oferta negociada. Só o necessário para os tickets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from gigconnect.domain.shared.value_objects import utcnow


@dataclass
class Gig:
    id: str = ""
    title: str = ""
    seller_id: str = ""
    price: float = 0.0
    rating: float = 0.0
    status: str = "open"
    created_at: datetime = field(default_factory=utcnow)

    def close_applications(self) -> None:
        self.status = "closed"

    def set_rating(self, average: Optional[float]) -> None:
        self.rating = average or 0.0
