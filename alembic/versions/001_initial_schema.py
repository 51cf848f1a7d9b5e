"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates the account, customer, catalogue, quote, job, invoice, payment
and event log tables for TradeFlow.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def _line_item_columns():
    return [
        sa.Column('service_name', sa.String(255), nullable=False),
        sa.Column('price', sa.Float(), server_default='0'),
        sa.Column('quantity', sa.Integer(), server_default='1'),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table('users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.DateTime()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email')
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Profiles share their primary key with the user
    op.create_table('profiles',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('service_types', sa.JSON()),
        sa.Column('phone', sa.String(50)),
        sa.Column('subscription_tier', sa.String(20), server_default='free'),
        sa.Column('customer_limit', sa.Integer(), server_default='10'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Customers table
    op.create_table('customers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_user', 'customers', ['user_id'])
    op.create_index('ix_customers_name', 'customers', ['name'])

    # Service catalogue
    op.create_table('services',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('default_price', sa.Float(), server_default='0'),
        sa.Column('description', sa.Text()),
        sa.Column('is_custom', sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_services_user', 'services', ['user_id'])

    # Quotes table
    op.create_table('quotes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('total_amount', sa.Float(), server_default='0'),
        sa.Column('valid_until', sa.Date()),
        sa.Column('notes', sa.Text()),
        sa.Column('customer_notes', sa.Text()),
        sa.Column('sent_at', sa.DateTime()),
        sa.Column('approved_at', sa.DateTime()),
        sa.Column('rejected_at', sa.DateTime()),
        sa.Column('expired_at', sa.DateTime()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quotes_user', 'quotes', ['user_id'])
    op.create_index('ix_quotes_customer', 'quotes', ['customer_id'])
    op.create_index('ix_quotes_status', 'quotes', ['status'])

    op.create_table('quote_services',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('quote_id', sa.String(36), nullable=False),
        *_line_item_columns(),
        sa.ForeignKeyConstraint(['quote_id'], ['quotes.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    # Jobs table
    op.create_table('jobs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('quote_id', sa.String(36)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('payment_status', sa.String(20), server_default='unpaid'),
        sa.Column('total_amount', sa.Float(), server_default='0'),
        sa.Column('scheduled_date', sa.DateTime()),
        sa.Column('start_time', sa.DateTime()),
        sa.Column('end_time', sa.DateTime()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['quote_id'], ['quotes.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_jobs_user', 'jobs', ['user_id'])
    op.create_index('ix_jobs_customer', 'jobs', ['customer_id'])
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_scheduled_date', 'jobs', ['scheduled_date'])

    op.create_table('job_services',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('job_id', sa.String(36), nullable=False),
        *_line_item_columns(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('job_photos',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('photo_url', sa.Text(), nullable=False),
        sa.Column('storage_path', sa.Text()),
        sa.Column('photo_type', sa.String(20), server_default='during'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('job_notes',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('time_entries',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_time_entries_job', 'time_entries', ['job_id'])

    # Invoices table
    op.create_table('invoices',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('total_amount', sa.Float(), server_default='0'),
        sa.Column('amount_paid', sa.Float(), server_default='0'),
        sa.Column('due_date', sa.Date()),
        sa.Column('payment_terms', sa.String(20)),
        sa.Column('notes', sa.Text()),
        sa.Column('stripe_payment_link', sa.Text()),
        sa.Column('stripe_checkout_session_id', sa.String(255)),
        sa.Column('stripe_payment_intent_id', sa.String(255)),
        sa.Column('sent_at', sa.DateTime()),
        sa.Column('paid_at', sa.DateTime()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_invoices_user', 'invoices', ['user_id'])
    op.create_index('ix_invoices_customer', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_job', 'invoices', ['job_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_checkout_session', 'invoices', ['stripe_checkout_session_id'])
    op.create_index('ix_invoices_payment_intent', 'invoices', ['stripe_payment_intent_id'])

    # One row per applied payment; the unique intent id makes webhooks idempotent
    op.create_table('invoice_payments',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('invoice_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('payment_method', sa.String(20), server_default='other'),
        sa.Column('stripe_payment_intent_id', sa.String(255)),
        sa.Column('refund_amount', sa.Float(), server_default='0'),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_payment_intent_id')
    )
    op.create_index('ix_invoice_payments_invoice', 'invoice_payments', ['invoice_id'])

    # Event log table
    op.create_table('event_log',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36)),
        sa.Column('timestamp', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('actor_type', sa.String(20), server_default='user'),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(36)),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('extra_data', sa.JSON()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_user', 'event_log', ['user_id'])
    op.create_index('ix_event_log_timestamp', 'event_log', ['timestamp'])
    op.create_index('ix_event_log_entity', 'event_log', ['entity_type', 'entity_id'])


def downgrade() -> None:
    op.drop_table('event_log')
    op.drop_table('invoice_payments')
    op.drop_table('invoices')
    op.drop_table('time_entries')
    op.drop_table('job_notes')
    op.drop_table('job_photos')
    op.drop_table('job_services')
    op.drop_table('jobs')
    op.drop_table('quote_services')
    op.drop_table('quotes')
    op.drop_table('services')
    op.drop_table('customers')
    op.drop_table('profiles')
    op.drop_table('users')
