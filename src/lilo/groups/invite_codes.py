"""Join code generation for groups.

Codes look like ``SLEE-7K2Q``: the first four letters/digits of the group
name, uppercased, a dash, and a random suffix drawn from A-Z0-9 with a
cryptographic random source. Codes are never regenerated.
"""

from __future__ import annotations

import secrets
import string

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lilo.config import get_settings
from lilo.db.models import Group
from lilo.errors import Conflict

INVITE_CHARSET = string.ascii_uppercase + string.digits  # A-Z, 0-9
PREFIX_LENGTH = 4
FALLBACK_PREFIX = "LILO"


def code_prefix(name: str) -> str:
    """First four alphanumeric characters of the name, uppercased."""
    alnum = "".join(c for c in name.upper() if c in INVITE_CHARSET)
    return alnum[:PREFIX_LENGTH] or FALLBACK_PREFIX


def generate_invite_code(name: str, suffix_length: int = 4) -> str:
    """Generate a join code for a group called `name`."""
    suffix = "".join(secrets.choice(INVITE_CHARSET) for _ in range(suffix_length))
    return f"{code_prefix(name)}-{suffix}"


def normalize_invite_code(code: str) -> str:
    """Normalize a join code for case-insensitive lookup."""
    return code.strip().upper()


async def generate_unique_invite_code(db: AsyncSession, name: str) -> str:
    """Generate a join code that no existing group uses."""
    settings = get_settings()
    for _ in range(settings.invite_code_attempts):
        code = generate_invite_code(name, settings.invite_suffix_length)
        existing = await db.execute(select(Group.id).where(Group.code == code))
        if existing.scalar_one_or_none() is None:
            return code
    raise Conflict(
        f"Failed to generate a unique join code after {settings.invite_code_attempts} attempts"
    )
