"""Initial schema: users, books, libraries, copy ledger and loans

Revision ID: 3f9c2a71d0b4
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a71d0b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, comment="User's email address (used for login, stored lower-case)"),
        sa.Column('hashed_password', sa.String(length=255), nullable=False, comment='Bcrypt hashed password'),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user', comment='Role: user, staff or admin'),
        sa.Column('first_name', sa.String(length=255), nullable=True),
        sa.Column('last_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the user registered'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='When the user profile was last updated'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table('books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False, comment='Book title'),
        sa.Column('author', sa.String(length=255), nullable=True, comment='Author name as printed on the cover'),
        sa.Column('isbn', sa.String(length=20), nullable=True, comment='International Standard Book Number'),
        sa.Column('published_at', sa.DateTime(timezone=True), nullable=True, comment='Publication date'),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('thumbnail', sa.Text(), nullable=True, comment='URL of the cover thumbnail'),
        sa.Column('edition', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_books_title'), 'books', ['title'], unique=False)
    op.create_index(op.f('ix_books_author'), 'books', ['author'], unique=False)
    op.create_index(op.f('ix_books_isbn'), 'books', ['isbn'], unique=True)

    op.create_table('libraries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('street_address', sa.String(length=255), nullable=True),
        sa.Column('postal_code', sa.String(length=20), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_libraries_name'), 'libraries', ['name'], unique=True)

    op.create_table('books_libraries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=False),
        sa.Column('total_copies', sa.Integer(), nullable=False),
        sa.Column('available_copies', sa.Integer(), nullable=False),
        sa.Column('borrowed_copies', sa.Integer(), nullable=False),
        sa.CheckConstraint('available_copies >= 0', name='ck_books_libraries_available'),
        sa.CheckConstraint('borrowed_copies >= 0', name='ck_books_libraries_borrowed'),
        sa.CheckConstraint('total_copies = available_copies + borrowed_copies', name='ck_books_libraries_total'),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('book_id', 'library_id', name='uq_books_libraries_book_library')
    )
    op.create_index(op.f('ix_books_libraries_book_id'), 'books_libraries', ['book_id'], unique=False)
    op.create_index(op.f('ix_books_libraries_library_id'), 'books_libraries', ['library_id'], unique=False)

    op.create_table('users_books',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('book_id', sa.Integer(), nullable=False),
        sa.Column('library_id', sa.Integer(), nullable=False),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('borrowed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('returned_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['book_id'], ['books.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['library_id'], ['libraries.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_books_user_book_returned', 'users_books', ['user_id', 'book_id', 'returned_at'], unique=False)
    op.create_index(
        'uq_users_books_open_loan',
        'users_books',
        ['user_id', 'book_id'],
        unique=True,
        postgresql_where=sa.text('returned_at IS NULL'),
        sqlite_where=sa.text('returned_at IS NULL'),
    )


def downgrade() -> None:
    op.drop_index('uq_users_books_open_loan', table_name='users_books')
    op.drop_index('ix_users_books_user_book_returned', table_name='users_books')
    op.drop_table('users_books')
    op.drop_index(op.f('ix_books_libraries_library_id'), table_name='books_libraries')
    op.drop_index(op.f('ix_books_libraries_book_id'), table_name='books_libraries')
    op.drop_table('books_libraries')
    op.drop_index(op.f('ix_libraries_name'), table_name='libraries')
    op.drop_table('libraries')
    op.drop_index(op.f('ix_books_isbn'), table_name='books')
    op.drop_index(op.f('ix_books_author'), table_name='books')
    op.drop_index(op.f('ix_books_title'), table_name='books')
    op.drop_table('books')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_table('users')
