"""Initial schema

Revision ID: 3f2c1a9d7b10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f2c1a9d7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('pssm_id', sa.String(length=50), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('region', sa.String(length=100), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)

    op.create_table(
        'location_states',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_table(
        'location_districts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('state_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['state_id'], ['location_states.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('state_id', 'name'),
    )
    op.create_table(
        'location_towns',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('district_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['district_id'], ['location_districts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('district_id', 'name'),
    )
    op.create_table(
        'location_centers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('town_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['town_id'], ['location_towns.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('town_id', 'name'),
    )

    op.create_table(
        'print_batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('batch_name', sa.String(length=100), nullable=False),
        sa.Column('total_books', sa.Integer(), nullable=False),
        sa.Column('remaining_books', sa.Integer(), nullable=False),
        sa.Column('serial_start', sa.String(length=50), nullable=True),
        sa.Column('serial_end', sa.String(length=50), nullable=True),
        sa.Column('printed_date', sa.Date(), nullable=True),
        sa.Column('printer_name', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('total_books > 0', name='ck_print_batches_total_positive'),
        sa.CheckConstraint('remaining_books >= 0 AND remaining_books <= total_books',
                           name='ck_print_batches_remaining_bounds'),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('print_batches', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_print_batches_batch_name'), ['batch_name'], unique=True)

    op.create_table(
        'distributions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('recipient_type', sa.String(length=20), nullable=False),
        sa.Column('recipient_name', sa.String(length=200), nullable=False),
        sa.Column('entity_name', sa.String(length=200), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('pssm_id', sa.String(length=50), nullable=True),
        sa.Column('address_line', sa.String(length=255), nullable=True),
        sa.Column('town', sa.String(length=100), nullable=True),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('pincode', sa.String(length=10), nullable=True),
        sa.Column('batch_id', sa.Integer(), nullable=True),
        sa.Column('batch_name', sa.String(length=100), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['batch_id'], ['print_batches.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('distributions', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_distributions_town'), ['town'], unique=False)
        batch_op.create_index(batch_op.f('ix_distributions_district'), ['district'], unique=False)
        batch_op.create_index(batch_op.f('ix_distributions_state'), ['state'], unique=False)

    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_number', sa.String(length=50), nullable=False),
        sa.Column('batch_id', sa.Integer(), nullable=True),
        sa.Column('batch_name', sa.String(length=100), nullable=True),
        sa.Column('distribution_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('assigned_to_name', sa.String(length=200), nullable=True),
        sa.Column('assigned_to_phone', sa.String(length=20), nullable=True),
        sa.Column('pssm_id', sa.String(length=50), nullable=True),
        sa.Column('address_line', sa.String(length=255), nullable=True),
        sa.Column('town', sa.String(length=100), nullable=True),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('total_pages', sa.Integer(), nullable=False),
        sa.Column('filled_pages', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_mode', sa.String(length=10), nullable=True),
        sa.Column('assigned_date', sa.Date(), nullable=True),
        sa.Column('registration_date', sa.Date(), nullable=True),
        sa.Column('received_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('filled_pages >= 0 AND filled_pages <= total_pages',
                           name='ck_books_filled_pages_bounds'),
        sa.ForeignKeyConstraint(['batch_id'], ['print_batches.id']),
        sa.ForeignKeyConstraint(['distribution_id'], ['distributions.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('books', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_books_book_number'), ['book_number'], unique=True)
        batch_op.create_index(batch_op.f('ix_books_distribution_id'), ['distribution_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_books_status'), ['status'], unique=False)

    op.create_table(
        'book_pages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('page_number', sa.Integer(), nullable=False),
        sa.Column('receipt_number', sa.String(length=50), nullable=True),
        sa.Column('donor_name', sa.String(length=200), nullable=True),
        sa.Column('donor_phone', sa.String(length=20), nullable=True),
        sa.Column('donor_address', sa.String(length=255), nullable=True),
        sa.Column('profession', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('town', sa.String(length=100), nullable=True),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('payment_mode', sa.String(length=10), nullable=True),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('is_filled', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('amount >= 0', name='ck_book_pages_amount_non_negative'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'page_number'),
    )
    with op.batch_alter_table('book_pages', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_book_pages_book_id'), ['book_id'], unique=False)

    op.create_table(
        'bulk_imports',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('total_rows', sa.Integer(), nullable=True),
        sa.Column('valid_rows', sa.Integer(), nullable=True),
        sa.Column('error_rows', sa.Integer(), nullable=True),
        sa.Column('committed_rows', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('committed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'bulk_import_rows',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('bulk_import_id', sa.Integer(), nullable=False),
        sa.Column('row_number', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=10), nullable=False),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['bulk_import_id'], ['bulk_imports.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    with op.batch_alter_table('bulk_import_rows', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_bulk_import_rows_bulk_import_id'), ['bulk_import_id'], unique=False)


def downgrade():
    op.drop_table('bulk_import_rows')
    op.drop_table('bulk_imports')
    op.drop_table('book_pages')
    op.drop_table('books')
    op.drop_table('distributions')
    op.drop_table('print_batches')
    op.drop_table('location_centers')
    op.drop_table('location_towns')
    op.drop_table('location_districts')
    op.drop_table('location_states')
    op.drop_table('users')
