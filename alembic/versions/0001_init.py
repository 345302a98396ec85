from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'inventory',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('product_id', sa.String(64), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False, server_default='0'),
        sa.Column('reserved_quantity', sa.Integer, nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer, nullable=False, server_default='10'),
        sa.Column('version', sa.Integer, nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_quantity_non_negative'),
        sa.CheckConstraint('reserved_quantity >= 0', name='ck_inventory_reserved_non_negative'),
        sa.CheckConstraint('low_stock_threshold >= 0', name='ck_inventory_threshold_non_negative'),
    )
    # Authoritative one-record-per-product guard
    op.create_index('ix_inventory_product_id', 'inventory', ['product_id'], unique=True)
    op.create_index('ix_inventory_updated_at', 'inventory', ['updated_at'])

def downgrade():
    op.drop_index('ix_inventory_updated_at', table_name='inventory')
    op.drop_index('ix_inventory_product_id', table_name='inventory')
    op.drop_table('inventory')
