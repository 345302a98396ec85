from alembic import op
import sqlalchemy as sa

revision = '0002_inventory_adjustments'
down_revision = '0001_init'
branch_labels = None
depends_on = None

def upgrade():
    # No FK to inventory: ledger entries outlive the records they describe
    op.create_table(
        'inventory_adjustments',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('inventory_id', sa.String(36), nullable=False),
        sa.Column('adjustment_type', sa.String(50), nullable=False),
        sa.Column('quantity_change', sa.Integer, nullable=False),
        sa.Column('reason', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_inventory_adjustments_inventory_id', 'inventory_adjustments', ['inventory_id'])

def downgrade():
    op.drop_index('ix_inventory_adjustments_inventory_id', table_name='inventory_adjustments')
    op.drop_table('inventory_adjustments')
