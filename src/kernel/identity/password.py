"""
Password hashing utilities using bcrypt.
"""

import bcrypt

BCRYPT_ROUNDS = 10


class PasswordHasher:
    """Password hashing service."""

    @staticmethod
    def _encode(password: str) -> bytes:
        # bcrypt only uses the first 72 bytes
        return password.encode("utf-8")[:72]

    @staticmethod
    def hash(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt(rounds=rounds)
        return bcrypt.hashpw(PasswordHasher._encode(password), salt).decode("utf-8")

    @staticmethod
    def verify(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        A malformed stored hash verifies as False rather than raising.
        """
        try:
            return bcrypt.checkpw(
                PasswordHasher._encode(plain_password),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            return False


def hash_password(password: str) -> str:
    """Hash a password."""
    return PasswordHasher.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password."""
    return PasswordHasher.verify(plain_password, hashed_password)
