"""Initial migration - users, catalog, orders and B2B tables

Revision ID: 001
Revises:
Create Date: 2025-01-15

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('customer', 'seller', 'freelancer', 'admin', name='user_role')
seller_category = sa.Enum('importateur', 'grossiste', 'fournisseur', name='seller_category')
order_status = sa.Enum('pending', 'processing', 'shipped', 'delivered', 'cancelled', name='order_status')
payment_status = sa.Enum('pending', 'paid', 'failed', 'refunded', name='payment_status')
offer_type = sa.Enum('auction', 'negotiable', name='b2b_offer_type')
offer_status = sa.Enum('open', 'closed', 'expired', name='b2b_offer_status')
target_category = sa.Enum('importateur', 'grossiste', 'fournisseur', name='b2b_target_category')
response_type = sa.Enum('bid', 'negotiation', name='b2b_response_type')
response_status = sa.Enum('pending', 'accepted', 'rejected', 'outbid', 'withdrawn', name='b2b_response_status')
notification_type = sa.Enum(
    'new_offer', 'new_bid', 'outbid', 'negotiation_submitted', 'negotiation_accepted',
    'negotiation_rejected', 'auction_won', 'auction_lost', 'auction_ending_soon', 'offer_expired',
    name='b2b_notification_type',
)

money = sa.Numeric(12, 2)


def upgrade() -> None:
    # Users
    op.create_table(
        'users',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('seller_category', seller_category, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('user_id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_role'), 'users', ['role'])
    op.create_index(op.f('ix_users_seller_category'), 'users', ['seller_category'])

    # Catalog
    op.create_table(
        'products',
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('seller_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=False),
        sa.Column('price', money, nullable=False),
        sa.Column('original_price', money, nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('product_type', sa.String(length=100), nullable=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image_url', sa.String(length=1000), nullable=False),
        sa.Column('in_stock', sa.Boolean(), nullable=False),
        sa.Column('is_promo', sa.Boolean(), nullable=False),
        sa.Column('min_quantity', sa.Integer(), nullable=False),
        sa.Column('viewers_count', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['seller_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('product_id')
    )
    op.create_index(op.f('ix_products_slug'), 'products', ['slug'], unique=True)
    op.create_index(op.f('ix_products_seller_id'), 'products', ['seller_id'])
    op.create_index(op.f('ix_products_brand'), 'products', ['brand'])
    op.create_index(op.f('ix_products_category'), 'products', ['category'])
    op.create_index(op.f('ix_products_created_at'), 'products', ['created_at'])

    op.create_table(
        'wishlist',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.user_id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.product_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_wishlist_user_product')
    )
    op.create_index(op.f('ix_wishlist_user_id'), 'wishlist', ['user_id'])

    # Orders
    op.create_table(
        'counters',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('name')
    )

    op.create_table(
        'orders',
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('seller_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=50), nullable=False),
        sa.Column('customer_address', sa.Text(), nullable=False),
        sa.Column('customer_wilaya', sa.String(length=100), nullable=False),
        sa.Column('total', money, nullable=False),
        sa.Column('status', order_status, nullable=False),
        sa.Column('payment_status', payment_status, nullable=False),
        sa.Column('delivery_date', sa.String(length=50), nullable=True),
        sa.Column('tracking_number', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('order_id')
    )
    op.create_index(op.f('ix_orders_order_number'), 'orders', ['order_number'], unique=True)
    op.create_index(op.f('ix_orders_user_id'), 'orders', ['user_id'])
    op.create_index(op.f('ix_orders_seller_id'), 'orders', ['seller_id'])
    op.create_index(op.f('ix_orders_status'), 'orders', ['status'])
    op.create_index(op.f('ix_orders_created_at'), 'orders', ['created_at'])
    op.create_index('idx_orders_seller_status', 'orders', ['seller_id', 'status'])

    op.create_table(
        'order_items',
        sa.Column('item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('order_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_image', sa.String(length=1000), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', money, nullable=False),
        sa.Column('subtotal', money, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.order_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('item_id')
    )
    op.create_index(op.f('ix_order_items_order_id'), 'order_items', ['order_id'])

    # B2B marketplace
    op.create_table(
        'b2b_offers',
        sa.Column('offer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('seller_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('images', postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column('tags', postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column('base_price', money, nullable=False),
        sa.Column('min_quantity', sa.Integer(), nullable=False),
        sa.Column('available_quantity', sa.Integer(), nullable=False),
        sa.Column('offer_type', offer_type, nullable=False),
        sa.Column('status', offer_status, nullable=False),
        sa.Column('current_bid', money, nullable=True),
        sa.Column('highest_bidder_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True),
        sa.Column('target_category', target_category, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['seller_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('offer_id')
    )
    op.create_index(op.f('ix_b2b_offers_seller_id'), 'b2b_offers', ['seller_id'])
    op.create_index(op.f('ix_b2b_offers_status'), 'b2b_offers', ['status'])
    op.create_index(op.f('ix_b2b_offers_ends_at'), 'b2b_offers', ['ends_at'])
    op.create_index(op.f('ix_b2b_offers_target_category'), 'b2b_offers', ['target_category'])
    op.create_index(op.f('ix_b2b_offers_created_at'), 'b2b_offers', ['created_at'])
    op.create_index('idx_b2b_offers_status_target', 'b2b_offers', ['status', 'target_category'])
    op.create_index('idx_b2b_offers_status_ends', 'b2b_offers', ['status', 'ends_at'])

    op.create_table(
        'b2b_offer_responses',
        sa.Column('response_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('offer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('buyer_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('response_type', response_type, nullable=False),
        sa.Column('status', response_status, nullable=False),
        sa.Column('amount', money, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['offer_id'], ['b2b_offers.offer_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['buyer_id'], ['users.user_id']),
        sa.PrimaryKeyConstraint('response_id')
    )
    op.create_index(op.f('ix_b2b_offer_responses_offer_id'), 'b2b_offer_responses', ['offer_id'])
    op.create_index(op.f('ix_b2b_offer_responses_buyer_id'), 'b2b_offer_responses', ['buyer_id'])
    op.create_index('idx_b2b_responses_offer_buyer', 'b2b_offer_responses', ['offer_id', 'buyer_id'])
    op.create_index('idx_b2b_responses_offer_status', 'b2b_offer_responses', ['offer_id', 'status'])

    op.create_table(
        'b2b_notifications',
        sa.Column('notification_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('type', notification_type, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('offer_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('response_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('metadata_json', postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('notification_id')
    )
    op.create_index(op.f('ix_b2b_notifications_user_id'), 'b2b_notifications', ['user_id'])
    op.create_index(op.f('ix_b2b_notifications_offer_id'), 'b2b_notifications', ['offer_id'])
    op.create_index(op.f('ix_b2b_notifications_created_at'), 'b2b_notifications', ['created_at'])
    op.create_index('idx_b2b_notifications_user_read', 'b2b_notifications', ['user_id', 'read'])


def downgrade() -> None:
    op.drop_table('b2b_notifications')
    op.drop_table('b2b_offer_responses')
    op.drop_table('b2b_offers')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('counters')
    op.drop_table('wishlist')
    op.drop_table('products')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (
        notification_type, response_status, response_type, target_category, offer_status,
        offer_type, payment_status, order_status, seller_category, user_role,
    ):
        enum.drop(bind, checkfirst=True)
