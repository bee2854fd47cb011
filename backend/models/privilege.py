# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Privilege ORM model – a named access tier for users and locks."""

from sqlalchemy import Column, Integer, String, Text

from database import Base

# Assigned to every self-registered account; created on first use.
DEFAULT_PRIVILEGE = "default"


class Privilege(Base):
    __tablename__ = "privileges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), unique=True, nullable=False, index=True)  # e.g. "admin"
    description = Column(Text, nullable=True)
