"""Initial schema for users, catalog, recipes, daily calculations, stock ledger and activity logs

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-01-06

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', sa.String(6), nullable=False, server_default='worker'),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Create catalog tables
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('barcode', sa.String(100), nullable=True, unique=True),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('min_stock', sa.Numeric(12, 3), nullable=False, server_default='0'),
        sa.Column('price', sa.Numeric(12, 4), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_products_product_name', 'products', ['product_name'])

    op.create_table(
        'departments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )

    # Create recipe tables
    op.create_table(
        'recipes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('department_name', sa.String(255), nullable=False),
        sa.Column('total_cost', sa.Numeric(14, 4), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('idx_recipes_name', 'recipes', ['name'])
    op.create_index('idx_recipes_department', 'recipes', ['department_name'])

    op.create_table(
        'recipe_lines',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('recipe_id', sa.Uuid(), sa.ForeignKey('recipes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('price', sa.Numeric(12, 4), nullable=False, server_default='0'),
        sa.Column('quantity', sa.Numeric(12, 4), nullable=False),
    )
    op.create_index('idx_recipe_lines_recipe', 'recipe_lines', ['recipe_id'])
    op.create_index('idx_recipe_lines_product', 'recipe_lines', ['product_id'])

    # Create daily calculation tables
    op.create_table(
        'daily_calculations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_cost', sa.Numeric(14, 4), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_daily_calculations_date', 'daily_calculations', ['date'], unique=True)

    op.create_table(
        'daily_calculation_entries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('daily_calculation_id', sa.Uuid(), sa.ForeignKey('daily_calculations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('recipe_id', sa.Uuid(), sa.ForeignKey('recipes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('recipe_name', sa.String(255), nullable=False),
        sa.Column('department_name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 4), nullable=False),
    )
    op.create_index('idx_daily_calc_entries_calc', 'daily_calculation_entries', ['daily_calculation_id'])

    op.create_table(
        'ingredient_requirements',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('daily_calculation_id', sa.Uuid(), sa.ForeignKey('daily_calculations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('unit', sa.String(50), nullable=False),
        sa.Column('required_quantity', sa.Numeric(14, 4), nullable=False),
        sa.Column('total_price', sa.Numeric(14, 4), nullable=False),
    )
    op.create_index('idx_ingredient_requirements_calc', 'ingredient_requirements', ['daily_calculation_id'])
    op.create_index('idx_ingredient_requirements_product', 'ingredient_requirements', ['product_id'])

    # Create stock ledger tables
    op.create_table(
        'stocks',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('department_id', sa.Uuid(), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 4), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('product_id', 'department_id', name='uq_stock_product_department'),
        sa.CheckConstraint('quantity >= 0', name='ck_stocks_quantity_non_negative'),
    )

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('product_id', sa.Uuid(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('department_id', sa.Uuid(), sa.ForeignKey('departments.id'), nullable=False),
        sa.Column('quantity', sa.Numeric(14, 4), nullable=False),
        sa.Column('movement_type', sa.String(20), nullable=False),
        sa.Column('destination_category', sa.String(10), nullable=True),
        sa.Column('reference', sa.Text(), nullable=False),
        sa.Column('related_document_id', sa.Uuid(), nullable=True),
        sa.Column('related_document_type', sa.String(20), nullable=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_stock_movements_product_created', 'stock_movements', ['product_id', 'created_at'])
    op.create_index('idx_stock_movements_department_created', 'stock_movements', ['department_id', 'created_at'])

    # Create activity_logs table
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity_type', sa.String(20), nullable=False),
        sa.Column('entity_id', sa.Uuid(), nullable=False),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_activity_logs_entity', 'activity_logs', ['entity_type', 'entity_id'])
    op.create_index('idx_activity_logs_created', 'activity_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('activity_logs')
    op.drop_table('stock_movements')
    op.drop_table('stocks')
    op.drop_table('ingredient_requirements')
    op.drop_table('daily_calculation_entries')
    op.drop_table('daily_calculations')
    op.drop_table('recipe_lines')
    op.drop_table('recipes')
    op.drop_table('departments')
    op.drop_table('products')
    op.drop_table('users')
