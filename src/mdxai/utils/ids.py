"""ID utilities."""

from __future__ import annotations

import uuid


def new_request_id(prefix: str = "gen_") -> str:
    """Return a short random id for correlating logs and events of one request.

    Args:
        prefix: ID prefix.
    """

    return f"{prefix}{uuid.uuid4().hex[:12]}"
