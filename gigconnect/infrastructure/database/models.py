"""
Modelos SQLAlchemy — camada de Infraestrutura.

Tabelas:
  - users    (snapshot do diretório: créditos, histórico de pedidos, avaliações)
  - gigs     (ofertas negociadas)
  - tickets  (documento da negociação: mensagens + timeline em JSONB, versão otimista)
"""

from __future__ import annotations

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from gigconnect.infrastructure.database.session import Base

JSONDocument = JSON().with_variant(JSONB, "postgresql")


# ────────────────────────────────────────────────────────────────
# USERS
# ────────────────────────────────────────────────────────────────
class UserModel(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    profile_picture = Column(Text, nullable=True)
    credits = Column(Float, nullable=False, default=0.0)
    gigs_completed = Column(Integer, nullable=False, default=0)
    total_gigs = Column(Integer, nullable=False, default=0)
    completion_rate = Column(Float, nullable=False, default=0.0)
    order_history = Column(JSONDocument, default=list)
    ratings = Column(JSONDocument, default=list)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True)


# ────────────────────────────────────────────────────────────────
# GIGS
# ────────────────────────────────────────────────────────────────
class GigModel(Base):
    __tablename__ = "gigs"

    id = Column(String(32), primary_key=True)
    title = Column(String(255), nullable=False)
    seller_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    price = Column(Float, nullable=False)
    rating = Column(Float, nullable=False, default=0.0)
    status = Column(String(50), nullable=False, server_default="open")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    seller = relationship("UserModel")


# ────────────────────────────────────────────────────────────────
# TICKETS
# ────────────────────────────────────────────────────────────────
class TicketModel(Base):
    __tablename__ = "tickets"

    __table_args__ = (
        Index("ix_tickets_seller_id_created_at", "seller_id", "created_at"),
        Index("ix_tickets_buyer_id_created_at", "buyer_id", "created_at"),
    )

    id = Column(String(32), primary_key=True)
    gig_id = Column(String(32), ForeignKey("gigs.id", ondelete="CASCADE"), nullable=False, index=True)
    seller_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    buyer_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(50), nullable=False, server_default="open", index=True)
    agreed_price = Column(Float, nullable=True)
    messages = Column(JSONDocument, default=list)
    timeline = Column(JSONDocument, default=list)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    gig = relationship("GigModel", lazy="joined")
    seller = relationship("UserModel", foreign_keys=[seller_id], lazy="joined")
    buyer = relationship("UserModel", foreign_keys=[buyer_id], lazy="joined")

    # Toda gravação faz UPDATE ... WHERE version = <lida>; divergência → StaleDataError
    __mapper_args__ = {"version_id_col": version}
