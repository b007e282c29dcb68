"""Create resource, FAQ and contact inquiry tables

Revision ID: 0001_create_cms_tables
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_create_cms_tables'
down_revision = None
branch_labels = None
depends_on = None

# Enums are stored by member name, as SQLModel maps them
resource_status = sa.Enum('DRAFT', 'REVIEW', 'PUBLISHED', 'ARCHIVED', name='resourcestatus')
faq_status = sa.Enum('ACTIVE', 'INACTIVE', name='faqstatus')
inquiry_status = sa.Enum('NEW', 'IN_PROGRESS', 'RESOLVED', 'CLOSED', name='inquirystatus')
inquiry_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'URGENT', name='inquirypriority')


def upgrade():
    op.create_table('resource_categories',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('slug', sa.String(length=255), nullable=False),
    sa.Column('description', sa.String(), nullable=True),
    sa.Column('color', sa.String(length=7), nullable=False),
    sa.Column('icon', sa.String(), nullable=True),
    sa.Column('featured_image', sa.String(), nullable=True),
    sa.Column('parent_id', sa.Integer(), nullable=True),
    sa.Column('meta_title', sa.String(), nullable=True),
    sa.Column('meta_description', sa.String(), nullable=True),
    sa.Column('meta_keywords', sa.String(), nullable=True),
    sa.Column('is_active', sa.Boolean(), nullable=False),
    sa.Column('is_featured', sa.Boolean(), nullable=False),
    sa.Column('sort_order', sa.Integer(), nullable=False),
    sa.Column('resource_count', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['parent_id'], ['resource_categories.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_resource_categories_name'), 'resource_categories', ['name'], unique=False)
    op.create_index(op.f('ix_resource_categories_slug'), 'resource_categories', ['slug'], unique=True)
    op.create_index(op.f('ix_resource_categories_parent_id'), 'resource_categories', ['parent_id'], unique=False)
    op.create_index(op.f('ix_resource_categories_is_active'), 'resource_categories', ['is_active'], unique=False)
    op.create_index(op.f('ix_resource_categories_deleted_at'), 'resource_categories', ['deleted_at'], unique=False)

    op.create_table('resources',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('title', sa.String(length=255), nullable=False),
    sa.Column('slug', sa.String(length=255), nullable=False),
    sa.Column('excerpt', sa.String(), nullable=False),
    sa.Column('content', sa.String(), nullable=False),
    sa.Column('category_id', sa.Integer(), nullable=True),
    sa.Column('author_id', sa.Integer(), nullable=True),
    sa.Column('tags', sa.JSON(), nullable=True),
    sa.Column('meta_title', sa.String(), nullable=True),
    sa.Column('meta_description', sa.String(), nullable=True),
    sa.Column('meta_keywords', sa.String(), nullable=True),
    sa.Column('featured_image', sa.String(), nullable=True),
    sa.Column('gallery_images', sa.JSON(), nullable=True),
    sa.Column('is_featured', sa.Boolean(), nullable=False),
    sa.Column('is_trending', sa.Boolean(), nullable=False),
    sa.Column('is_published', sa.Boolean(), nullable=False),
    sa.Column('published_at', sa.DateTime(), nullable=True),
    sa.Column('status', resource_status, nullable=False),
    sa.Column('view_count', sa.Integer(), nullable=False),
    sa.Column('share_count', sa.Integer(), nullable=False),
    sa.Column('like_count', sa.Integer(), nullable=False),
    sa.Column('read_time', sa.Integer(), nullable=True),
    sa.Column('seo_score', sa.Integer(), nullable=False),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.Column('deleted_at', sa.DateTime(), nullable=True),
    sa.ForeignKeyConstraint(['category_id'], ['resource_categories.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_resources_slug'), 'resources', ['slug'], unique=True)
    op.create_index(op.f('ix_resources_category_id'), 'resources', ['category_id'], unique=False)
    op.create_index(op.f('ix_resources_author_id'), 'resources', ['author_id'], unique=False)
    op.create_index(op.f('ix_resources_is_featured'), 'resources', ['is_featured'], unique=False)
    op.create_index(op.f('ix_resources_is_trending'), 'resources', ['is_trending'], unique=False)
    op.create_index(op.f('ix_resources_is_published'), 'resources', ['is_published'], unique=False)
    op.create_index(op.f('ix_resources_published_at'), 'resources', ['published_at'], unique=False)
    op.create_index(op.f('ix_resources_deleted_at'), 'resources', ['deleted_at'], unique=False)

    op.create_table('faq_categories',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('slug', sa.String(length=255), nullable=False),
    sa.Column('description', sa.String(), nullable=True),
    sa.Column('icon', sa.String(), nullable=True),
    sa.Column('color', sa.String(length=7), nullable=True),
    sa.Column('status', faq_status, nullable=False),
    sa.Column('sort_order', sa.Integer(), nullable=False),
    sa.Column('meta_title', sa.String(), nullable=True),
    sa.Column('meta_description', sa.String(), nullable=True),
    sa.Column('created_by', sa.Integer(), nullable=True),
    sa.Column('updated_by', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_faq_categories_slug'), 'faq_categories', ['slug'], unique=True)

    op.create_table('faqs',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('question', sa.String(length=500), nullable=False),
    sa.Column('answer', sa.String(), nullable=False),
    sa.Column('category_id', sa.Integer(), nullable=False),
    sa.Column('status', faq_status, nullable=False),
    sa.Column('sort_order', sa.Integer(), nullable=False),
    sa.Column('is_featured', sa.Boolean(), nullable=False),
    sa.Column('tags', sa.JSON(), nullable=True),
    sa.Column('view_count', sa.Integer(), nullable=False),
    sa.Column('is_helpful_tracking', sa.Boolean(), nullable=False),
    sa.Column('helpful_count', sa.Integer(), nullable=False),
    sa.Column('not_helpful_count', sa.Integer(), nullable=False),
    sa.Column('meta_description', sa.String(), nullable=True),
    sa.Column('slug', sa.String(length=255), nullable=False),
    sa.Column('created_by', sa.Integer(), nullable=True),
    sa.Column('updated_by', sa.Integer(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.ForeignKeyConstraint(['category_id'], ['faq_categories.id']),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_faqs_category_id'), 'faqs', ['category_id'], unique=False)
    op.create_index(op.f('ix_faqs_status'), 'faqs', ['status'], unique=False)
    op.create_index(op.f('ix_faqs_is_featured'), 'faqs', ['is_featured'], unique=False)
    op.create_index(op.f('ix_faqs_slug'), 'faqs', ['slug'], unique=True)

    op.create_table('contact_inquiries',
    sa.Column('id', sa.Integer(), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('company', sa.String(), nullable=True),
    sa.Column('phone', sa.String(length=20), nullable=True),
    sa.Column('service', sa.String(), nullable=True),
    sa.Column('message', sa.String(), nullable=False),
    sa.Column('status', inquiry_status, nullable=False),
    sa.Column('priority', inquiry_priority, nullable=False),
    sa.Column('source', sa.String(), nullable=False),
    sa.Column('metadata', sa.JSON(), nullable=True),
    sa.Column('responded_at', sa.DateTime(), nullable=True),
    sa.Column('assigned_to', sa.Integer(), nullable=True),
    sa.Column('notes', sa.String(), nullable=True),
    sa.Column('created_at', sa.DateTime(), nullable=False),
    sa.Column('updated_at', sa.DateTime(), nullable=False),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_contact_inquiries_email'), 'contact_inquiries', ['email'], unique=False)
    op.create_index(op.f('ix_contact_inquiries_status'), 'contact_inquiries', ['status'], unique=False)
    op.create_index(op.f('ix_contact_inquiries_assigned_to'), 'contact_inquiries', ['assigned_to'], unique=False)
    op.create_index(op.f('ix_contact_inquiries_created_at'), 'contact_inquiries', ['created_at'], unique=False)


def downgrade():
    op.drop_table('contact_inquiries')
    op.drop_table('faqs')
    op.drop_table('faq_categories')
    op.drop_table('resources')
    op.drop_table('resource_categories')
    bind = op.get_bind()
    for enum in (inquiry_priority, inquiry_status, faq_status, resource_status):
        enum.drop(bind, checkfirst=True)
