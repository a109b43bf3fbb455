"""create_images_and_site_settings

Revision ID: 3c1d9a7e52b0
Revises:
Create Date: 2026-10-19 09:12:41.208311

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3c1d9a7e52b0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

image_category = sa.Enum(
    'featured', 'gallery', 'store', 'collaborations', 'about',
    name='image_category'
)


def upgrade() -> None:
    op.create_table(
        'images',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('url', sa.String(), nullable=False),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('original_name', sa.String(), nullable=True),
        sa.Column('category', image_category, nullable=False),
        sa.Column('subcategory', sa.String(), nullable=True),
        sa.Column('custom_name', sa.String(), nullable=True),
        sa.Column('price', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.BigInteger(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('size', sa.Integer(), nullable=True),
        sa.Column('content_type', sa.String(), nullable=True),
    )
    # Every read filters on category, most also on subcategory
    op.create_index(op.f('ix_images_category'), 'images', ['category'], unique=False)
    op.create_index(op.f('ix_images_subcategory'), 'images', ['subcategory'], unique=False)

    op.create_table(
        'site_settings',
        sa.Column('key', sa.String(length=64), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('site_settings')
    op.drop_index(op.f('ix_images_subcategory'), table_name='images')
    op.drop_index(op.f('ix_images_category'), table_name='images')
    op.drop_table('images')
    image_category.drop(op.get_bind(), checkfirst=True)
