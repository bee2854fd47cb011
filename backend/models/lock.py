# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Lock ORM model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from database import Base
from models.privilege import Privilege


class Lock(Base):
    __tablename__ = "locks"

    # Caller-chosen, stable identifier (e.g. "L1")
    id = Column(String(64), primary_key=True)
    owner_privilege_id = Column(Integer, ForeignKey("privileges.id"), nullable=False, index=True)
    is_open = Column(Boolean, nullable=False, default=False)
    # Written by locks/service.py on every accepted transition
    last_modified = Column(DateTime(timezone=True), nullable=False)

    owner = relationship(Privilege, lazy="joined", innerjoin=True)
