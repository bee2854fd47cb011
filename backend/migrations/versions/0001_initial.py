"""Initial schema – privileges, users, locks and log_entries

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

One canonical schema.  log_entries keeps its rows when the referenced user
or lock is deleted (ON DELETE SET NULL), so the audit trail outlives the
entities it describes.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_ACTIONS = ("CREATE", "UPDATE", "DELETE", "LOGIN", "LOGIN_FAILED")


def upgrade() -> None:
    # -- privileges -----------------------------------------------------
    op.create_table(
        "privileges",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
    )
    op.create_index("ix_privileges_name", "privileges", ["name"], unique=True)

    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("login", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "privilege_id",
            sa.Integer(),
            sa.ForeignKey("privileges.id"),
            nullable=False,
        ),
        sa.Column("token", sa.Text(), nullable=True),
        sa.Column("token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        # Both session columns are set, or neither is
        sa.CheckConstraint(
            "(token IS NULL) = (token_expiry IS NULL)",
            name="ck_users_token_pair",
        ),
    )
    op.create_index("ix_users_login", "users", ["login"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_privilege_id", "users", ["privilege_id"])

    # -- locks ----------------------------------------------------------
    op.create_table(
        "locks",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column(
            "owner_privilege_id",
            sa.Integer(),
            sa.ForeignKey("privileges.id"),
            nullable=False,
        ),
        sa.Column("is_open", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_modified", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_locks_owner_privilege_id", "locks", ["owner_privilege_id"])

    # -- log_entries ----------------------------------------------------
    op.create_table(
        "log_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "lock_id",
            sa.String(64),
            sa.ForeignKey("locks.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "action",
            sa.Enum(*_ACTIONS, name="log_action", native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("detail", sa.JSON(), nullable=True),
    )
    op.create_index("ix_log_entries_user_id", "log_entries", ["user_id"])
    op.create_index("ix_log_entries_lock_id", "log_entries", ["lock_id"])
    op.create_index("ix_log_entries_action", "log_entries", ["action"])
    op.create_index("ix_log_entries_timestamp", "log_entries", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_log_entries_timestamp", table_name="log_entries")
    op.drop_index("ix_log_entries_action", table_name="log_entries")
    op.drop_index("ix_log_entries_lock_id", table_name="log_entries")
    op.drop_index("ix_log_entries_user_id", table_name="log_entries")
    op.drop_table("log_entries")
    op.drop_index("ix_locks_owner_privilege_id", table_name="locks")
    op.drop_table("locks")
    op.drop_index("ix_users_privilege_id", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_login", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_privileges_name", table_name="privileges")
    op.drop_table("privileges")
