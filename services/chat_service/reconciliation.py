"""
Reconciliation of pending view-state messages with their stored counterparts.
"""

import heapq
from datetime import timedelta
from operator import attrgetter
from typing import List, Sequence, Set

from services.chat_service.models import Message

DEFAULT_WINDOW = timedelta(minutes=5)


def _matches(pending: Message, stored: Message, window: timedelta) -> bool:
    # The store rejected unsaved messages, no record can stand for them
    if pending.unsaved:
        return False
    return (
        stored.role == pending.role
        and stored.content == pending.content
        and stored.conversation_id == pending.conversation_id
        and stored.created_at >= pending.created_at - window
    )


def reconcile(
    view: Sequence[Message],
    settled: Sequence[Message],
    window: timedelta = DEFAULT_WINDOW,
) -> List[Message]:
    """
    Merge the session's messages with the settled list returned by the store.

    A pending message is replaced by the first unclaimed stored record with
    the same role, content and conversation whose timestamp is no earlier than
    the pending one minus `window`. Messages flagged `unsaved` never match.
    Stored records already shown in the view are never claimed, so running the
    merge again on its own output returns the same list.

    The result is `settled` in store order with the unmatched pending messages
    placed among them by `created_at`; on equal timestamps the stored record
    comes first.
    """
    shown: Set[str] = {m.id for m in view if m.is_settled}
    candidates = [m for m in settled if m.id not in shown]
    claimed: Set[str] = set()
    leftovers: List[Message] = []

    for message in view:
        if message.is_settled:
            continue

        match = next(
            (
                stored for stored in candidates
                if stored.id not in claimed and _matches(message, stored, window)
            ),
            None,
        )
        if match is None:
            leftovers.append(message)
        else:
            claimed.add(match.id)

    return list(heapq.merge(settled, leftovers, key=attrgetter("created_at")))
