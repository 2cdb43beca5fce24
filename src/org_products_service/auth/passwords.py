"""bcrypt credential hashing."""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


# Compared against when the email is unknown so login timing does not reveal
# whether an account exists. Must cost the same as a real hash.
_UNKNOWN_USER_HASH = hash_password("unknown-user-placeholder", rounds=BCRYPT_ROUNDS)


def verify_password(password: str, hashed: str | None) -> bool:
    """Return True if password matches the stored hash; malformed hashes never match.

    bcrypt rejects passwords over 72 bytes with ``ValueError``; those never match.
    """
    try:
        if not hashed:
            bcrypt.checkpw(password.encode("utf-8"), _UNKNOWN_USER_HASH.encode("utf-8"))
            return False
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False
