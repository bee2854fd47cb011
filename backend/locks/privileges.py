# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Privilege resolver.

``authorize`` is a pure function of (identity, lock, action): no queries, no
logging, no side effects.  The lock only needs its ``owner`` privilege
attached, so a transient ``Lock`` works as well as a loaded one.

Ordering (names compared case-insensitively)::

    guest  <  default  <  operator  <  admin

* ``admin`` may write to every lock.
* ``auditor`` may read everything and write nothing.
* Otherwise a write (create / update / delete) needs the caller's
  privilege to equal the lock's owner, or to rank at or above it.
* A caller privilege missing from the table ranks below everything; an
  owner privilege missing from the table ranks with ``admin``.
* Reads only need a valid identity.
"""

import enum
from typing import TYPE_CHECKING

from models.lock import Lock
from models.log_entry import WRITE_ACTIONS, Action

if TYPE_CHECKING:
    from auth.tokens import Identity

ADMIN = "admin"
AUDITOR = "auditor"

PRIVILEGE_RANKS = {
    "guest": 0,
    "default": 1,
    "operator": 2,
    ADMIN: 3,
}

READ_ONLY_PRIVILEGES = frozenset({AUDITOR})

_TOP_RANK = max(PRIVILEGE_RANKS.values())


class Decision(str, enum.Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


def is_admin(privilege: str) -> bool:
    return privilege.lower() == ADMIN


def authorize(identity: "Identity", lock: Lock, action: Action) -> Decision:
    """
    Decide whether *identity* may perform *action* on *lock*.

    Only ``identity.privilege`` is read, so any object carrying a privilege
    name will do.
    """
    if action not in WRITE_ACTIONS:
        return Decision.ALLOWED

    caller = identity.privilege.lower()
    owner = lock.owner.name.lower()

    if caller in READ_ONLY_PRIVILEGES:
        return Decision.DENIED
    if caller == ADMIN or caller == owner:
        return Decision.ALLOWED

    caller_rank = PRIVILEGE_RANKS.get(caller, -1)
    owner_rank = PRIVILEGE_RANKS.get(owner, _TOP_RANK)
    if caller_rank >= owner_rank:
        return Decision.ALLOWED
    return Decision.DENIED
