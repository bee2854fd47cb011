# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""User ORM model."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base
from models.privilege import Privilege


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # Both session columns are set, or neither is
        CheckConstraint("(token IS NULL) = (token_expiry IS NULL)", name="ck_users_token_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    login = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False, server_default="")
    # pbkdf2_sha256 string – the salt is embedded in it
    password_hash = Column(String(255), nullable=False)
    privilege_id = Column(Integer, ForeignKey("privileges.id"), nullable=False, index=True)

    # The single active session.  Both columns are NULL or both are set;
    # only auth/store.py writes them.
    token = Column(Text, nullable=True)
    token_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    privilege = relationship(Privilege, lazy="joined", innerjoin=True)
