from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('orders_count', sa.Integer, nullable=False, server_default='0'),
        sa.CheckConstraint('orders_count >= 0', name='ck_customers_orders_count_non_negative'),
    )
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('sku', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('price', sa.Numeric(10,2), nullable=False),
        sa.Column('stock', sa.Integer, nullable=False, server_default='0'),
        sa.Column('sold', sa.Integer, nullable=False, server_default='0'),
        sa.Column('seller_id', sa.Integer, nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('sold >= 0', name='ck_products_sold_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
    )
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)
    op.create_index('ix_products_seller_id', 'products', ['seller_id'])
    op.create_table(
        'coupons',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('discount', sa.Numeric(5,2), nullable=False),
        sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('expiry_date', sa.DateTime, nullable=True),
        sa.CheckConstraint('discount >= 0 AND discount <= 100', name='ck_coupons_discount_percent'),
    )
    op.create_index('ix_coupons_name', 'coupons', ['name'], unique=True)
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('customer_id', sa.Integer, sa.ForeignKey('customers.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('coupon_id', sa.Integer, sa.ForeignKey('coupons.id', ondelete='SET NULL'), nullable=True),
        sa.Column('total_price', sa.Numeric(10,2), nullable=False),
        sa.Column('discount', sa.Numeric(10,2), nullable=False, server_default='0'),
        sa.Column('final_price', sa.Numeric(10,2), nullable=False),
        sa.Column('payment_method', sa.String(20), nullable=False, server_default='COD'),
        sa.Column('address_house', sa.String(200), nullable=False),
        sa.Column('address_street', sa.String(200), nullable=True),
        sa.Column('address_landmark', sa.String(200), nullable=True),
        sa.Column('address_pincode', sa.Integer, nullable=False),
        sa.Column('address_city', sa.String(100), nullable=False),
        sa.Column('address_state', sa.String(100), nullable=False),
        sa.Column('address_country', sa.String(100), nullable=False),
        sa.Column('status', sa.String(30), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
        sa.CheckConstraint('total_price >= 0', name='ck_orders_total_price_non_negative'),
        sa.CheckConstraint('discount >= 0 AND discount <= total_price', name='ck_orders_discount_bounds'),
        sa.CheckConstraint('final_price >= 0', name='ck_orders_final_price_non_negative'),
    )
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('idx_orders_customer_created', 'orders', ['customer_id', 'created_at'])
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('seller_id', sa.Integer, nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('unit_price', sa.Numeric(10,2), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_order_items_unit_price_non_negative'),
    )
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])
    op.create_index('ix_order_items_seller_id', 'order_items', ['seller_id'])

def downgrade():
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('coupons')
    op.drop_table('products')
    op.drop_table('customers')
