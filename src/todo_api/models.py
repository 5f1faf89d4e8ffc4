from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    Storage-level representation of a row of the `todos` table.

    Fields:
    - id: Unique integer identifier assigned by storage
    - title: Trimmed, non-empty title
    - description: Optional description (None when absent or blank)
    - completed: Boolean completion flag, never None
    - created_at: Insertion timestamp, never updated
    """

    id: int
    title: str
    description: Optional[str]
    completed: bool
    created_at: datetime
