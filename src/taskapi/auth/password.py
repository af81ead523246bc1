"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor (rounds=12) takes ~100ms per hash on modern hardware.

Legacy plaintext credentials (demo seed, rows imported from older
deployments) are still verified, and auto-upgraded to bcrypt on
successful login.
"""

import secrets

import bcrypt


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Passwords are truncated to 72 bytes
    (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    """Verify a password against the stored credential.

    Supports bcrypt ($2b$...) hashes and legacy plaintext values.
    Use needs_upgrade() to check if the stored value should be re-hashed.
    """
    if not stored:
        return False
    if _is_legacy(stored):
        return secrets.compare_digest(
            password.encode("utf-8"), stored.encode("utf-8")
        )
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, stored.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def needs_upgrade(stored: str) -> bool:
    """Check if a stored credential should be upgraded to bcrypt."""
    return _is_legacy(stored)


def _is_legacy(stored: str) -> bool:
    """Anything that isn't a bcrypt hash is treated as plaintext."""
    return not stored.startswith(("$2a$", "$2b$", "$2y$"))
