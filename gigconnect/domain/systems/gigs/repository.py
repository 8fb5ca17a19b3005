"""Interface (porta) do repositório de Gigs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entity import Gig


class IGigRepository(ABC):

    @abstractmethod
    async def get_by_id(self, gig_id: str) -> Optional[Gig]:
        ...

    @abstractmethod
    async def create(self, gig: Gig) -> Gig:
        ...

    @abstractmethod
    async def update(self, gig: Gig) -> Gig:
        ...
