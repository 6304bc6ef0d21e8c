"""
Human-readable document numbers
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

def generate_reference(prefix: str) -> str:
    """e.g. RES-20261017-3FA9C2; uniqueness is enforced by the column"""
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"{prefix}-{today}-{uuid4().hex[:6].upper()}"

def as_ref(value) -> Optional[str]:
    """Normalise an id that may arrive as int or str"""
    if value is None or value == "":
        return None
    return str(value)
