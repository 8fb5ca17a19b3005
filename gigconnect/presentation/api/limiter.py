import time
from collections import defaultdict

from fastapi import Depends, HTTPException, status

from gigconnect.domain.systems.users.entity import User
from gigconnect.infrastructure.config import get_settings
from gigconnect.presentation.api.deps import get_current_active_user

settings = get_settings()


class InMemoryRateLimiter:
    """
    Rate limiter em memória por identidade (janela deslizante).

    Usado como dependency nas rotas REST e via hit() no canal realtime,
    de modo que os dois caminhos compartilham o mesmo orçamento.
    NOTE: com múltiplos workers cada processo tem sua própria janela.
    """
    def __init__(self, requests: int, window: int):
        self.requests = requests
        self.window = window
        self.clients = defaultdict(list)

    def hit(self, key: str) -> bool:
        """Registra uma chamada; False se o limite da janela já foi atingido."""
        now = time.monotonic()

        # Evita crescimento sem limite
        if len(self.clients) > 10000:
            self.clients.clear()

        self.clients[key] = [
            req_time for req_time in self.clients[key]
            if now - req_time < self.window
        ]
        if len(self.clients[key]) >= self.requests:
            return False

        self.clients[key].append(now)
        return True

    async def __call__(self, current_user: User = Depends(get_current_active_user)):
        if not self.hit(current_user.id):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
            )

    def reset(self):
        """Reset internal storage (useful for tests)."""
        self.clients.clear()


message_limiter = InMemoryRateLimiter(
    requests=settings.MESSAGE_RATE_LIMIT,
    window=settings.MESSAGE_RATE_WINDOW_SECONDS,
)
attachment_limiter = InMemoryRateLimiter(
    requests=settings.ATTACHMENT_RATE_LIMIT,
    window=settings.ATTACHMENT_RATE_WINDOW_SECONDS,
)
