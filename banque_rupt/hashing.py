"""
One-way hashing for user passwords and card PINs.

Stored form: "scrypt$<salt>$<hex digest>".
"""

import hashlib
import hmac
import secrets

SCHEME = "scrypt"


def _generate_salt() -> str:
    return secrets.token_hex(16)


def _scrypt(secret: str, salt: str) -> str:
    return hashlib.scrypt(
        secret.encode(),
        salt=salt.encode(),
        n=16384, r=8, p=1
    ).hex()


def hash_secret(secret: str) -> str:
    """Hash a password or PIN with a fresh random salt"""
    salt = _generate_salt()
    return f"{SCHEME}${salt}${_scrypt(secret, salt)}"


def verify_secret(secret: str, stored: str) -> bool:
    """Constant-time comparison of a candidate secret against a stored hash"""
    try:
        scheme, salt, digest = stored.split("$", 2)
    except (AttributeError, ValueError):
        return False
    if scheme != SCHEME:
        return False
    return hmac.compare_digest(_scrypt(secret, salt), digest)
