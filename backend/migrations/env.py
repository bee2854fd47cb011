# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Alembic environment – wires the migration engine to the same database the
application uses.

The database URL is loaded from etc/app.conf via the application's Settings
class, so there is a single source of truth for the connection string.
"""

import os
import sys

# ---------------------------------------------------------------------------
# Path setup – make sure ``backend/`` is importable so that
# ``from core.config import get_settings`` and model imports work when
# alembic is run from a plain checkout.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from alembic import context  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402

from core.config import get_settings  # noqa: E402
from database import Base  # noqa: E402

# Import every ORM model so that Base.metadata knows about all tables.
# Without this, ``alembic revision --autogenerate`` cannot detect them.
import models.privilege  # noqa: F401, E402
import models.user       # noqa: F401, E402
import models.lock       # noqa: F401, E402
import models.log_entry  # noqa: F401, E402

_database_url = get_settings().database_url


# ---------------------------------------------------------------------------
# Online mode (the default – uses a live DB connection)
# ---------------------------------------------------------------------------
def run_migrations_online():
    connectable = create_engine(_database_url)
    with connectable.connect() as conn:
        context.configure(
            connection=conn,
            target_metadata=Base.metadata,
            render_as_batch=conn.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


# ---------------------------------------------------------------------------
# Offline mode (generates SQL without a live connection)
# ---------------------------------------------------------------------------
def run_migrations_offline():
    context.configure(
        url=_database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
