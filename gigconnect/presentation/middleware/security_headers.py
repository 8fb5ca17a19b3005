from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

from gigconnect.infrastructure.config import get_settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, api_prefix: str = "/api"):
        super().__init__(app)
        self.settings = get_settings()
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        # HSTS só faz sentido atrás de HTTPS (produção)
        if not self.settings.DEBUG:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # Swagger UI precisa de 'unsafe-inline' e do CDN; o front usa ws(s) para o canal realtime
        csp = (
            "default-src 'self'; "
            "img-src 'self' data: https://fastapi.tiangolo.com; "
            "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
            "connect-src 'self' ws: wss:"
        )
        response.headers["Content-Security-Policy"] = csp

        # Respostas da API carregam mensagens privadas
        if request.url.path.startswith(self.api_prefix):
            response.headers["Cache-Control"] = "no-store"

        return response
