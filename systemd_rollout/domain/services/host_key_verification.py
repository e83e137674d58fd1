"""
Host Key Verification

Architectural Intent:
- Pure decision function for fingerprint pinning, called synchronously by the
  session adapter while the SSH handshake is in progress
- Fails closed: a configured fingerprint must match byte-for-byte
- No configured fingerprint means any identity is accepted (explicit opt-out,
  reduced security)
"""

import hmac
from typing import Optional


def verify_identity(offered: bytes, expected: Optional[bytes]) -> bool:
    if expected is None:
        return True
    if not offered:
        return False
    return hmac.compare_digest(bytes(offered), bytes(expected))


def format_fingerprint(fingerprint: bytes) -> str:
    return ":".join(f"{b:02x}" for b in fingerprint)
