"""Armazenamento dos anexos de mensagens no filesystem local."""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path

from gigconnect.application.dtos.ticket_dtos import AttachmentUpload
from gigconnect.domain.shared.exceptions import UpstreamError, ValidationFailedError
from gigconnect.infrastructure.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


class FileStorageError(ValidationFailedError):
    """Arquivo recusado (tipo ou tamanho)."""

    def __init__(self, message: str) -> None:
        super().__init__(message, errors=[{"field": "attachment", "message": message}])


class FileStorageService:
    """Armazena arquivos em disco local, organizados por ticket_id, e devolve a URL pública."""

    def __init__(self, base_dir: str | Path | None = None, url_prefix: str | None = None) -> None:
        self.base_dir = Path(base_dir or settings.UPLOAD_DIR)
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")

    def _ticket_dir(self, ticket_id: str) -> Path:
        d = self.base_dir / "tickets" / ticket_id
        d.mkdir(parents=True, exist_ok=True)
        return d

    def validate(self, upload: AttachmentUpload) -> None:
        if upload.content_type not in settings.ALLOWED_CONTENT_TYPES:
            raise FileStorageError(
                f"Tipo não permitido: {upload.content_type}. "
                f"Permitidos: {', '.join(settings.ALLOWED_CONTENT_TYPES)}"
            )
        if not upload.data:
            raise FileStorageError("Arquivo vazio")
        if len(upload.data) > settings.MAX_FILE_SIZE_BYTES:
            raise FileStorageError(
                f"Arquivo excede o limite de {settings.MAX_FILE_SIZE_MB}MB"
            )

    async def save(self, ticket_id: str, upload: AttachmentUpload) -> str:
        """Valida, grava e retorna a URL pública do arquivo."""
        self.validate(upload)

        # Nome gerado: o nome original nunca vai para o disco
        ext = Path(upload.filename or "file").suffix.lower()
        stored_name = f"{uuid.uuid4().hex}{ext}"

        try:
            dest = self._ticket_dir(ticket_id) / stored_name
            await asyncio.to_thread(dest.write_bytes, upload.data)
        except OSError as e:
            logger.error("Falha ao gravar anexo do ticket %s: %s", ticket_id, e)
            raise UpstreamError("storage", "Falha ao armazenar o anexo") from e

        logger.info("Anexo armazenado: ticket=%s file=%s (%d bytes)", ticket_id, stored_name, len(upload.data))
        return f"{self.url_prefix}/tickets/{ticket_id}/{stored_name}"
