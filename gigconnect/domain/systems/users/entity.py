"""Entidade de domínio User — snapshot do diretório de usuários usado pelos tickets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from gigconnect.domain.events.base import AggregateRoot
from gigconnect.domain.shared.value_objects import (
    OrderHistoryEntry,
    Rating,
    round_half_up,
    utcnow,
)


@dataclass
class User(AggregateRoot):
    id: str = ""
    full_name: str = ""
    email: str = ""
    profile_picture: Optional[str] = None
    credits: float = 0.0
    gigs_completed: int = 0
    total_gigs: int = 0
    completion_rate: float = 0.0
    order_history: list[OrderHistoryEntry] = field(default_factory=list)
    ratings: list[Rating] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        AggregateRoot.__init__(self)
        self.order_history = [
            OrderHistoryEntry.from_dict(o) if isinstance(o, dict) else o
            for o in self.order_history
        ]
        self.ratings = [
            Rating.from_dict(r) if isinstance(r, dict) else r
            for r in self.ratings
        ]

    # ── Regras de negócio (lado do vendedor) ──

    def credit_payment(self, amount: float, gig_title: str) -> None:
        self.credits = round_half_up(self.credits + amount, 2)
        self.order_history.append(OrderHistoryEntry(
            title=gig_title,
            status="paid",
            earnings=amount,
        ))
        self.updated_at = utcnow()

    def record_completion(self, gig_title: str) -> None:
        self.gigs_completed += 1
        if self.total_gigs:
            self.completion_rate = round_half_up(
                self.gigs_completed / self.total_gigs * 100, 2
            )
        else:
            self.completion_rate = 0.0
        self.order_history = [
            o.with_status("completed") if o.title == gig_title and o.status == "paid" else o
            for o in self.order_history
        ]
        self.updated_at = utcnow()

    def add_rating(self, rating: Rating) -> None:
        self.ratings.append(rating)
        self.updated_at = utcnow()

    def average_rating(self) -> float:
        if not self.ratings:
            return 0.0
        return round_half_up(sum(r.value for r in self.ratings) / len(self.ratings), 1)
