from __future__ import annotations

import uuid


def generate_id(prefix: str) -> str:
    """Id con prefijo de tipo: leaderboard_..., feedback_..., session_..."""
    return f"{prefix}_{uuid.uuid4().hex}"
