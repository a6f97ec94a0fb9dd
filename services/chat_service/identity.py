"""
Temporary identifiers for entities the store has not acknowledged yet.
"""

import uuid

TEMPORARY_PREFIX = "temp-"


class IdentityAllocator:
    """
    Issues ids tagged with a reserved prefix. Store ids are plain UUIDs, so a
    temporary id can never collide with one.
    """

    def __init__(self, prefix: str = TEMPORARY_PREFIX):
        self.prefix = prefix
        self._issued = 0

    def allocate(self, kind: str) -> str:
        self._issued += 1
        return f"{self.prefix}{kind}-{uuid.uuid4().hex}"

    def is_temporary(self, identifier: str) -> bool:
        return identifier.startswith(self.prefix)

    @property
    def issued(self) -> int:
        return self._issued


def is_temporary_id(identifier: str) -> bool:
    """Check an id against the default prefix"""
    return identifier.startswith(TEMPORARY_PREFIX)
