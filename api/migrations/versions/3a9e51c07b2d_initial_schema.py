"""initial_schema

Revision ID: 3a9e51c07b2d
Revises: 
Create Date: 2026-10-19 10:12:31.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3a9e51c07b2d'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id_column() -> sa.Column:
    return sa.Column('id', sa.BigInteger(), sa.Identity(always=False), nullable=False)


def _creation_timestamp_column() -> sa.Column:
    return sa.Column('creation_timestamp', sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text('now()'))


def upgrade() -> None:
    op.create_table('users',
        _id_column(),
        sa.Column('name', sa.Text(), nullable=False),
        _creation_timestamp_column(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('posts',
        _id_column(),
        _creation_timestamp_column(),
        sa.Column('owner_id', sa.BigInteger(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('images',
        _id_column(),
        _creation_timestamp_column(),
        sa.Column('owner_id', sa.BigInteger(), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('caption', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('tags',
        _id_column(),
        _creation_timestamp_column(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='tags_name_key')
    )

    op.create_table('post_tags',
        _id_column(),
        _creation_timestamp_column(),
        sa.Column('post_id', sa.BigInteger(), nullable=False),
        sa.Column('tag_id', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['post_id'], ['posts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('post_id', 'tag_id', name='post_tags_post_id_tag_id_key')
    )

    op.create_table('image_tags',
        _id_column(),
        _creation_timestamp_column(),
        sa.Column('image_id', sa.BigInteger(), nullable=False),
        sa.Column('tag_id', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['image_id'], ['images.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('image_id', 'tag_id', name='image_tags_image_id_tag_id_key')
    )

    # Keyset pagination scans these in both directions
    for table in ('users', 'posts', 'images', 'tags'):
        op.create_index(f'{table}_creation_timestamp_idx', table, ['creation_timestamp'], unique=False)
    op.create_index('posts_owner_creation_timestamp_idx', 'posts', ['owner_id', 'creation_timestamp'], unique=False)
    op.create_index('images_owner_creation_timestamp_idx', 'images', ['owner_id', 'creation_timestamp'], unique=False)
    op.create_index('post_tags_tag_id_idx', 'post_tags', ['tag_id'], unique=False)
    op.create_index('image_tags_tag_id_idx', 'image_tags', ['tag_id'], unique=False)


def downgrade() -> None:
    op.drop_index('image_tags_tag_id_idx', table_name='image_tags')
    op.drop_index('post_tags_tag_id_idx', table_name='post_tags')
    op.drop_index('images_owner_creation_timestamp_idx', table_name='images')
    op.drop_index('posts_owner_creation_timestamp_idx', table_name='posts')
    for table in ('tags', 'images', 'posts', 'users'):
        op.drop_index(f'{table}_creation_timestamp_idx', table_name=table)

    # Drop tables in reverse order due to foreign key constraints
    op.drop_table('image_tags')
    op.drop_table('post_tags')
    op.drop_table('tags')
    op.drop_table('images')
    op.drop_table('posts')
    op.drop_table('users')
