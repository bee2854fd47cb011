# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the privilege tiers and the first admin user.

Run once after the initial migration:
    python bin/seed.py

The script reads FIRST_ADMIN_LOGIN, FIRST_ADMIN_EMAIL and
FIRST_ADMIN_PASSWORD from etc/app.conf.  After the row is inserted those
values are no longer used by the application.  Running it again is
harmless: existing privileges and users are left untouched.
"""

import os
import sys

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import get_settings                     # noqa: E402
from core.logger import get_logger                        # noqa: E402
from core.security import hash_password                   # noqa: E402
from database import atomic, build_engine, build_session_factory  # noqa: E402
from auth.store import ensure_privilege                   # noqa: E402
from models.log_entry import Action                       # noqa: E402
from models.privilege import DEFAULT_PRIVILEGE            # noqa: E402
from models.user import User                              # noqa: E402
from audit.service import AuditLogger                     # noqa: E402

log = get_logger("seed")

PRIVILEGE_TIERS = [
    ("Admin", "Full system access"),
    ("Operator", "Limited access for daily operations"),
    ("Guest", "No access to anything"),
    ("Auditor", "Read-only access for auditing purposes"),
    (DEFAULT_PRIVILEGE, "Default privilege for new users"),
]


def seed():
    settings = get_settings()
    engine = build_engine(settings)
    db = build_session_factory(engine)()
    try:
        with atomic(db):
            privileges = {name: ensure_privilege(db, name, description) for name, description in PRIVILEGE_TIERS}

        if not (settings.first_admin_login and settings.first_admin_email and settings.first_admin_password):
            log.info("FIRST_ADMIN_LOGIN / _EMAIL / _PASSWORD not set in etc/app.conf – no admin created.")
            return

        existing = db.query(User).filter(User.login == settings.first_admin_login).first()
        if existing:
            log.info("Admin '%s' already exists – skipping.", settings.first_admin_login)
            return

        with atomic(db):
            admin = User(
                login=settings.first_admin_login,
                email=settings.first_admin_email,
                name="Administrator",
                password_hash=hash_password(settings.first_admin_password, settings.password_hash_rounds),
                privilege=privileges["Admin"],
            )
            db.add(admin)
            db.flush()
            AuditLogger(db).record(None, None, Action.CREATE, {"entity": "user", "login": admin.login, "seeded": True})
        log.info("Admin '%s' created successfully.", settings.first_admin_login)
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    seed()
