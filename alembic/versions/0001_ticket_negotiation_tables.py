"""users_gigs_tickets

Revision ID: 0001
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # 1) Snapshot de usuários (créditos, histórico, avaliações)
    op.create_table(
        'users',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('profile_picture', sa.Text, nullable=True),
        sa.Column('credits', sa.Float, nullable=False, server_default='0'),
        sa.Column('gigs_completed', sa.Integer, nullable=False, server_default='0'),
        sa.Column('total_gigs', sa.Integer, nullable=False, server_default='0'),
        sa.Column('completion_rate', sa.Float, nullable=False, server_default='0'),
        sa.Column('order_history', JSONB, nullable=True),
        sa.Column('ratings', JSONB, nullable=True),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # 2) Gigs
    op.create_table(
        'gigs',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('seller_id', sa.String(32),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('price', sa.Float, nullable=False),
        sa.Column('rating', sa.Float, nullable=False, server_default='0'),
        sa.Column('status', sa.String(50), nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_gigs_seller_id', 'gigs', ['seller_id'])

    # 3) Tickets: documento da negociação com versão otimista
    op.create_table(
        'tickets',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('gig_id', sa.String(32),
                  sa.ForeignKey('gigs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('seller_id', sa.String(32),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('buyer_id', sa.String(32),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(50), nullable=False, server_default='open'),
        sa.Column('agreed_price', sa.Float, nullable=True),
        sa.Column('messages', JSONB, nullable=True),
        sa.Column('timeline', JSONB, nullable=True),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_tickets_gig_id', 'tickets', ['gig_id'])
    op.create_index('ix_tickets_status', 'tickets', ['status'])
    op.create_index('ix_tickets_created_at', 'tickets', ['created_at'])
    # Listagem "meus tickets" filtra por participante e ordena por data
    op.create_index('ix_tickets_seller_id_created_at', 'tickets', ['seller_id', 'created_at'])
    op.create_index('ix_tickets_buyer_id_created_at', 'tickets', ['buyer_id', 'created_at'])


def downgrade():
    op.drop_table('tickets')
    op.drop_table('gigs')
    op.drop_table('users')
