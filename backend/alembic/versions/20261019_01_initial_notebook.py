"""create notebook entities, links and attachments"""

from alembic import op
import sqlalchemy as sa
from typing import Sequence, Union

revision: str = '20261019_01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LINK_TABLES = [
    ('experiments_links', 'experiments', 'items'),
    ('experiments2experiments', 'experiments', 'experiments'),
    ('items_links', 'items', 'items'),
    ('items2experiments', 'items', 'experiments'),
    ('experiments_templates_links', 'experiments_templates', 'items'),
    ('experiments_templates2experiments', 'experiments_templates', 'experiments'),
    ('items_types_links', 'items_types', 'items'),
    ('items_types2experiments', 'items_types', 'experiments'),
]


def _entity_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('body', sa.Text()),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('canread', sa.String(), nullable=False, server_default='team'),
        sa.Column('canwrite', sa.String(), nullable=False, server_default='user'),
        sa.Column('state', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('modified_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('userid', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('team_id', sa.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('lastchangeby', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
    ]


def _dated_columns():
    return [
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('elabid', sa.String(), nullable=False, unique=True),
        sa.Column('rating', sa.Integer(), server_default='0'),
        sa.Column('status', sa.Integer(), sa.ForeignKey('statuses.id', ondelete='SET NULL'), nullable=True),
    ]


def _attachment_columns():
    return [
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('item_type', sa.String(), nullable=False, index=True),
        sa.Column('item_id', sa.Integer(), nullable=False, index=True),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('full_name', sa.String()),
        sa.Column('orcid_id', sa.String()),
        sa.Column('is_admin', sa.Boolean(), server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'teams',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_by', sa.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'team_members',
        sa.Column('team_id', sa.UUID(as_uuid=True), sa.ForeignKey('teams.id'), primary_key=True),
        sa.Column('user_id', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), primary_key=True),
        sa.Column('role', sa.String(), server_default='member'),
    )
    op.create_table(
        'experiments_categories',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('color', sa.String(), server_default='29aeb9'),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false()),
    )
    op.create_table(
        'statuses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('entity_type', sa.String(), nullable=False, server_default='experiments'),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('color', sa.String(), server_default='bdbdbd'),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false()),
    )
    op.create_table(
        'items_types',
        *_entity_columns(),
        sa.Column('color', sa.String(), server_default='29aeb9'),
        sa.Column('is_bookable', sa.Boolean(), server_default=sa.false()),
    )
    op.create_table(
        'experiments_templates',
        *_entity_columns(),
        sa.Column('category', sa.Integer(), sa.ForeignKey('experiments_categories.id', ondelete='SET NULL')),
    )
    op.create_table(
        'experiments',
        *_entity_columns(),
        *_dated_columns(),
        sa.Column('category', sa.Integer(), sa.ForeignKey('experiments_categories.id', ondelete='SET NULL')),
    )
    op.create_table(
        'items',
        *_entity_columns(),
        *_dated_columns(),
        sa.Column('category', sa.Integer(), sa.ForeignKey('items_types.id', ondelete='SET NULL')),
        sa.Column('is_bookable', sa.Boolean(), server_default=sa.false()),
    )
    for name, owner, target in LINK_TABLES:
        op.create_table(
            name,
            sa.Column('item_id', sa.Integer(), sa.ForeignKey(f'{owner}.id', ondelete='CASCADE'), primary_key=True),
            sa.Column('link_id', sa.Integer(), sa.ForeignKey(f'{target}.id', ondelete='CASCADE'), primary_key=True),
        )
    op.create_table(
        'tags',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.UUID(as_uuid=True), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('tag', sa.String(), nullable=False),
        sa.UniqueConstraint('team_id', 'tag', name='uq_tags_team_tag'),
    )
    op.create_table(
        'tags2entity',
        sa.Column('tag_id', sa.Integer(), sa.ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('item_id', sa.Integer(), primary_key=True),
        sa.Column('item_type', sa.String(), primary_key=True),
    )
    op.create_table(
        'steps',
        *_attachment_columns(),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('ordering', sa.Integer(), server_default='0'),
        sa.Column('finished', sa.Boolean(), server_default=sa.false()),
        sa.Column('finished_time', sa.DateTime(), nullable=True),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'comments',
        *_attachment_columns(),
        sa.Column('userid', sa.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('comment', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('modified_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'uploads',
        *_attachment_columns(),
        sa.Column('real_name', sa.String(), nullable=False),
        sa.Column('long_name', sa.String(), nullable=False),
        sa.Column('comment', sa.String(), server_default=''),
        sa.Column('content_type', sa.String(), server_default='application/octet-stream'),
        sa.Column('filesize', sa.Integer(), server_default='0'),
        sa.Column('hash', sa.String()),
        sa.Column('hash_algorithm', sa.String(), server_default='sha256'),
        sa.Column('userid', sa.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_table(
        'audit_logs',
        sa.Column('id', sa.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('target_type', sa.String()),
        sa.Column('target_id', sa.String()),
        sa.Column('details', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP')),
    )


def downgrade() -> None:
    for table in ('audit_logs', 'uploads', 'comments', 'steps', 'tags2entity', 'tags'):
        op.drop_table(table)
    for name, _, _ in reversed(LINK_TABLES):
        op.drop_table(name)
    for table in (
        'items',
        'experiments',
        'experiments_templates',
        'items_types',
        'statuses',
        'experiments_categories',
        'team_members',
        'teams',
        'users',
    ):
        op.drop_table(table)
