"""PIN hashing with bcrypt.

PINs are short numeric-ish codes; hashing keeps them out of the database in
clear text, the login rate limiter keeps them from being brute forced.
"""

import bcrypt


def hash_pin(plain: str) -> str:
    hashed_bytes: bytes = bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt())
    return hashed_bytes.decode("utf-8")


def verify_pin(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
