"""initial schema

Revision ID: 7c1e4b2a9f30
Revises:
Create Date: 2026-10-18 10:12:44.501932

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c1e4b2a9f30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ROLES = ('USER', 'DELIVERY_PERSON', 'FLOOR_MANAGER', 'CENTER_OPERATOR', 'ADMIN')
ORDER_STATUSES = (
    'PLACED', 'ASSIGNED_FOR_PICKUP', 'PICKED_UP', 'AT_CENTER', 'PROCESSING', 'QC',
    'READY_FOR_DELIVERY', 'ASSIGNED_FOR_DELIVERY', 'OUT_FOR_DELIVERY', 'DELIVERED',
    'COMPLETED', 'CANCELLED', 'PICKUP_FAILED', 'DELIVERY_FAILED', 'REFUND_REQUESTED',
)


def _enum(values, name):
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('role', _enum(ROLES, 'user_role'), nullable=False),
        sa.Column('api_token_hash', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_api_token_hash'), 'users', ['api_token_hash'], unique=True)

    op.create_table('wallets',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('balance_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id')
    )
    op.create_index(op.f('ix_wallets_id'), 'wallets', ['id'], unique=False)

    op.create_table('addresses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('line1', sa.String(), nullable=False),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('pincode', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_addresses_id'), 'addresses', ['id'], unique=False)
    op.create_index(op.f('ix_addresses_user_id'), 'addresses', ['user_id'], unique=False)

    op.create_table('centers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('address', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_centers_id'), 'centers', ['id'], unique=False)

    op.create_table('services',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('base_price_cents', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )
    op.create_index(op.f('ix_services_id'), 'services', ['id'], unique=False)

    op.create_table('timeslots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('center_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('remaining_capacity', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['center_id'], ['centers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_timeslots_id'), 'timeslots', ['id'], unique=False)
    op.create_index(op.f('ix_timeslots_center_id'), 'timeslots', ['center_id'], unique=False)
    op.create_index(op.f('ix_timeslots_date'), 'timeslots', ['date'], unique=False)

    op.create_table('trips',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('delivery_person_id', sa.Integer(), nullable=False),
        sa.Column('type', _enum(('PICKUP', 'DELIVERY'), 'trip_type'), nullable=False),
        sa.Column('status', _enum(('PENDING', 'IN_PROGRESS', 'COMPLETED'), 'trip_status'), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['delivery_person_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_trips_id'), 'trips', ['id'], unique=False)
    op.create_index(op.f('ix_trips_delivery_person_id'), 'trips', ['delivery_person_id'], unique=False)
    op.create_index(op.f('ix_trips_scheduled_date'), 'trips', ['scheduled_date'], unique=False)

    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('address_id', sa.Integer(), nullable=False),
        sa.Column('center_id', sa.Integer(), nullable=True),
        sa.Column('timeslot_id', sa.Integer(), nullable=False),
        sa.Column('pickup_trip_id', sa.Integer(), nullable=True),
        sa.Column('delivery_trip_id', sa.Integer(), nullable=True),
        sa.Column('status', _enum(ORDER_STATUSES, 'order_status'), nullable=False),
        sa.Column('delivery_type', sa.String(length=16), nullable=False),
        sa.Column('delivery_charge_cents', sa.Integer(), nullable=False),
        sa.Column('estimated_delivery_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('pickup_failure_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['address_id'], ['addresses.id']),
        sa.ForeignKeyConstraint(['center_id'], ['centers.id']),
        sa.ForeignKeyConstraint(['delivery_trip_id'], ['trips.id']),
        sa.ForeignKeyConstraint(['pickup_trip_id'], ['trips.id']),
        sa.ForeignKeyConstraint(['timeslot_id'], ['timeslots.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_orders_id'), 'orders', ['id'], unique=False)
    op.create_index(op.f('ix_orders_user_id'), 'orders', ['user_id'], unique=False)
    op.create_index(op.f('ix_orders_center_id'), 'orders', ['center_id'], unique=False)
    op.create_index(op.f('ix_orders_pickup_trip_id'), 'orders', ['pickup_trip_id'], unique=False)
    op.create_index(op.f('ix_orders_delivery_trip_id'), 'orders', ['delivery_trip_id'], unique=False)
    op.create_index(op.f('ix_orders_created_at'), 'orders', ['created_at'], unique=False)
    op.create_index('ix_orders_center_id_status', 'orders', ['center_id', 'status'], unique=False)

    op.create_table('order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('service_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['service_id'], ['services.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_order_items_id'), 'order_items', ['id'], unique=False)
    op.create_index(op.f('ix_order_items_order_id'), 'order_items', ['order_id'], unique=False)

    op.create_table('order_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('from_status', _enum(ORDER_STATUSES, 'order_status'), nullable=True),
        sa.Column('to_status', _enum(ORDER_STATUSES, 'order_status'), nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('actor_role', _enum(ROLES, 'user_role'), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_order_logs_id'), 'order_logs', ['id'], unique=False)
    op.create_index(op.f('ix_order_logs_order_id'), 'order_logs', ['order_id'], unique=False)

    op.create_table('otps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('code_hash', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_otps_id'), 'otps', ['id'], unique=False)
    op.create_index('ix_otps_order_id_action', 'otps', ['order_id', 'action'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_index('ix_otps_order_id_action', table_name='otps')
    op.drop_index(op.f('ix_otps_id'), table_name='otps')
    op.drop_table('otps')

    op.drop_index(op.f('ix_order_logs_order_id'), table_name='order_logs')
    op.drop_index(op.f('ix_order_logs_id'), table_name='order_logs')
    op.drop_table('order_logs')

    op.drop_index(op.f('ix_order_items_order_id'), table_name='order_items')
    op.drop_index(op.f('ix_order_items_id'), table_name='order_items')
    op.drop_table('order_items')

    op.drop_index('ix_orders_center_id_status', table_name='orders')
    op.drop_index(op.f('ix_orders_created_at'), table_name='orders')
    op.drop_index(op.f('ix_orders_delivery_trip_id'), table_name='orders')
    op.drop_index(op.f('ix_orders_pickup_trip_id'), table_name='orders')
    op.drop_index(op.f('ix_orders_center_id'), table_name='orders')
    op.drop_index(op.f('ix_orders_user_id'), table_name='orders')
    op.drop_index(op.f('ix_orders_id'), table_name='orders')
    op.drop_table('orders')

    op.drop_index(op.f('ix_trips_scheduled_date'), table_name='trips')
    op.drop_index(op.f('ix_trips_delivery_person_id'), table_name='trips')
    op.drop_index(op.f('ix_trips_id'), table_name='trips')
    op.drop_table('trips')

    op.drop_index(op.f('ix_timeslots_date'), table_name='timeslots')
    op.drop_index(op.f('ix_timeslots_center_id'), table_name='timeslots')
    op.drop_index(op.f('ix_timeslots_id'), table_name='timeslots')
    op.drop_table('timeslots')

    op.drop_index(op.f('ix_services_id'), table_name='services')
    op.drop_table('services')

    op.drop_index(op.f('ix_centers_id'), table_name='centers')
    op.drop_table('centers')

    op.drop_index(op.f('ix_addresses_user_id'), table_name='addresses')
    op.drop_index(op.f('ix_addresses_id'), table_name='addresses')
    op.drop_table('addresses')

    op.drop_index(op.f('ix_wallets_id'), table_name='wallets')
    op.drop_table('wallets')

    op.drop_index(op.f('ix_users_api_token_hash'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
