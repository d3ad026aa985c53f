"""SRP-6a client for Apple's idmsa sign-in.

Only the parameter set Apple uses is implemented: the RFC 5054 2048-bit
group, SHA-256, RFC 5054 padding for k and u, and no username in x. The
password itself never enters SRP; the caller derives a key from it with
``derive_password_key`` and passes that in.
"""

from __future__ import annotations

import hashlib
import secrets

from reminders_cli.exceptions import SRPError

N = int(
    "AC6BDB41324A9A9BF166DE5E1389582FAF72B6651987EE07FC3192943DB56050"
    "A37329CBB4A099ED8193E0757767A13DD52312AB4B03310DCD7F48A9DA04FD50"
    "E8083969EDB767B0CF6095179A163AB3661A05FBD5FAAAE82918A9962F0B93B8"
    "55F97993EC975EEAA80D740ADBF4FF747359D041D5C33EA71D281E446B14773B"
    "CA97B43A23FB801676BD207A436C6481F1D2B9078717461A5B9D32E688F87748"
    "544523B524B0D57D5EA77A2775D2ECFA032CFBDBF52FB3786160279004E57AE6"
    "AF874E7303CE53299CCC041C7BC308D82A5698F3A8D0C38271AE35F8E9DBFBB6"
    "94B5C803D89F7AE435DE236D525F54759B65E372FCD68EF20FA7111F9E4AFF73",
    16,
)
G = 2

KEY_LENGTH = 32
PROTOCOLS = ("s2k", "s2k_fo")


def _to_bytes(value: int) -> bytes:
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


_N_BYTES = _to_bytes(N)
_WIDTH = len(_N_BYTES)


def _pad(value: int) -> bytes:
    return value.to_bytes(_WIDTH, "big")


def _hash(*parts: bytes) -> bytes:
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part)
    return digest.digest()


def _hash_int(*parts: bytes) -> int:
    return int.from_bytes(_hash(*parts), "big")


K_MULTIPLIER = _hash_int(_N_BYTES, _pad(G))


def derive_password_key(
    password: str, salt: bytes, iterations: int, protocol: str = "s2k"
) -> bytes:
    """SHA-256 the password, then PBKDF2-HMAC-SHA256 it with Apple's salt.

    ``s2k_fo`` accounts hash the hex form of the digest instead of the raw
    digest.
    """
    if protocol not in PROTOCOLS:
        raise SRPError(f"unsupported password protocol: {protocol}")
    password_hash = hashlib.sha256(password.encode("utf-8")).digest()
    if protocol == "s2k_fo":
        password_hash = password_hash.hex().encode("ascii")
    return hashlib.pbkdf2_hmac(
        "sha256", password_hash, salt, iterations, dklen=KEY_LENGTH
    )


def compute_x(salt: bytes, password_key: bytes) -> int:
    """Private key x = H(salt | H(":" | key)); Apple omits the username."""
    return _hash_int(salt, _hash(b":" + password_key))


class SRPClient:
    """Client half of one SRP exchange."""

    def __init__(self, username: str, private_value: int | None = None):
        self.username = username
        self._a = private_value or secrets.randbits(256)
        self.A = pow(G, self._a, N)
        self.M1: bytes | None = None
        self.M2: bytes | None = None
        self.session_key: bytes | None = None

    @property
    def public_bytes(self) -> bytes:
        return _to_bytes(self.A)

    def process_challenge(
        self, salt: bytes, server_public: bytes, password_key: bytes
    ) -> tuple[bytes, bytes]:
        """Compute the proofs (M1, M2) for the server challenge.

        Raises:
            SRPError: If the server's public value or scrambler is zero mod N
        """
        B = int.from_bytes(server_public, "big")
        if B % N == 0:
            raise SRPError("server public ephemeral is invalid")

        u = _hash_int(_pad(self.A), _pad(B))
        if u == 0:
            raise SRPError("scrambling parameter is zero")

        x = compute_x(salt, password_key)
        base = (B - K_MULTIPLIER * pow(G, x, N)) % N
        S = pow(base, self._a + u * x, N)
        K = _hash(_to_bytes(S))

        h_n = _hash(_N_BYTES)
        h_g = _hash(_pad(G))
        n_xor_g = bytes(a ^ b for a, b in zip(h_n, h_g))

        self.M1 = _hash(
            n_xor_g,
            _hash(self.username.encode("utf-8")),
            salt,
            _to_bytes(self.A),
            _to_bytes(B),
            K,
        )
        self.M2 = _hash(_to_bytes(self.A), self.M1, K)
        self.session_key = K
        return self.M1, self.M2
