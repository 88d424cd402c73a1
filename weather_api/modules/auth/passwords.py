"""Password hashing over bcrypt."""

import bcrypt
from fastapi.concurrency import run_in_threadpool

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class PasswordHasher:
    """One-way salted hash and constant-time verify."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """
        Check a plain password against a stored hash.

        A stored value that is not a bcrypt hash never verifies.
        """
        if not hashed or not self.looks_hashed(hashed):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            return False

    async def hash_async(self, password: str) -> str:
        """hash() on a threadpool worker, off the event loop thread."""
        return await run_in_threadpool(self.hash, password)

    async def verify_async(self, password: str, hashed: str) -> bool:
        return await run_in_threadpool(self.verify, password, hashed)

    @staticmethod
    def looks_hashed(value: str) -> bool:
        """Detect a value that is already a bcrypt hash."""
        return value.startswith(BCRYPT_PREFIXES) and len(value) == 60
