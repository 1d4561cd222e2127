"""
Password hashing and verification.

Uses bcrypt for password hashing with automatic
salting and configurable work factor.
"""

from __future__ import annotations

import asyncio

import bcrypt

from config.settings import config

# bcrypt ignores everything past 72 bytes; longer inputs are rejected upstream.
MAX_PASSWORD_BYTES = 72

_dummy_hash: bytes | None = None


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (auto-salted, work factor from config)."""
    salt = bcrypt.gensalt(rounds=config.bcrypt_rounds)
    return bcrypt.hashpw(password.encode(), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison against a bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False


def burn_verification(password: str) -> None:
    """
    Run one bcrypt comparison against a throwaway hash.

    Called when the account does not exist so that an unknown email costs
    the same as a wrong password.
    """
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=config.bcrypt_rounds))
    bcrypt.checkpw(password.encode(), _dummy_hash)


async def hash_password_async(password: str) -> str:
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(password: str, password_hash: str | None) -> bool:
    """Verify off the event loop; ``password_hash=None`` burns a dummy check."""
    if password_hash is None:
        await asyncio.to_thread(burn_verification, password)
        return False
    return await asyncio.to_thread(verify_password, password, password_hash)
