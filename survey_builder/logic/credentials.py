"""Salted password hashing for the user directory.

Encoded form: ``scrypt$<n>$<r>$<p>$<salt_b64>$<hash_b64>``. Anything without
the ``scrypt$`` prefix is a legacy plaintext record; it still verifies (in
constant time) and is reported by `needs_rehash` so the directory can upgrade
it on the next successful login.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import Protocol

SCHEME = "scrypt"
SALT_BYTES = 16
DKLEN = 32


class CredentialHasher(Protocol):
    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, encoded: str) -> bool:
        ...

    def needs_rehash(self, encoded: str) -> bool:
        ...


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


class ScryptHasher:
    def __init__(self, n: int = 2**14, r: int = 8, p: int = 1) -> None:
        self.n = n
        self.r = r
        self.p = p

    def _derive(self, password: str, salt: bytes, n: int, r: int, p: int) -> bytes:
        # maxmem sized for the configured cost (128 * r * n) with headroom.
        return hashlib.scrypt(
            password.encode("utf-8"),
            salt=salt,
            n=n,
            r=r,
            p=p,
            maxmem=256 * r * n + 1024 * 1024,
            dklen=DKLEN,
        )

    def hash(self, password: str) -> str:
        salt = secrets.token_bytes(SALT_BYTES)
        derived = self._derive(password, salt, self.n, self.r, self.p)
        return f"{SCHEME}${self.n}${self.r}${self.p}${_b64(salt)}${_b64(derived)}"

    def verify(self, password: str, encoded: str) -> bool:
        if not encoded.startswith(SCHEME + "$"):
            return hmac.compare_digest(password.encode("utf-8"), encoded.encode("utf-8"))
        try:
            _, n, r, p, salt_b64, hash_b64 = encoded.split("$")
            salt = base64.b64decode(salt_b64)
            expected = base64.b64decode(hash_b64)
            derived = self._derive(password, salt, int(n), int(r), int(p))
        except ValueError:
            return False
        return hmac.compare_digest(derived, expected)

    def needs_rehash(self, encoded: str) -> bool:
        if not encoded.startswith(SCHEME + "$"):
            return True
        parts = encoded.split("$")
        return parts[1:4] != [str(self.n), str(self.r), str(self.p)]


__all__ = ["CredentialHasher", "ScryptHasher", "SCHEME"]
