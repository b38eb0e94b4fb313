from __future__ import annotations

import uuid


def new_id() -> str:
    """Fresh record id, unique across devices writing to the same store."""
    return uuid.uuid4().hex
