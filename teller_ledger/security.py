"""
Credential helpers: PIN hashing and card-number generation.

PINs are never stored. Only a salted PBKDF2-SHA256 digest is kept,
encoded as:

    pbkdf2_sha256$<iterations>$<salt b64>$<digest b64>

so the iteration count can be raised later without invalidating
existing hashes.
"""

import base64
import hashlib
import hmac
import secrets

from teller_ledger.config import get_settings

ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def hash_pin(pin: str, iterations: int | None = None) -> str:
    """Return an encoded salted hash for the given PIN."""
    if iterations is None:
        iterations = get_settings().PIN_HASH_ITERATIONS
    salt = secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), salt, iterations)
    return f"{ALGORITHM}${iterations}${_b64(salt)}${_b64(digest)}"


def verify_pin(pin: str, encoded: str) -> bool:
    """
    Check a PIN against an encoded hash.

    Returns False for malformed hashes instead of raising, so a
    corrupted row reads as a failed check.
    """
    try:
        algorithm, iterations, salt_b64, digest_b64 = encoded.split("$")
        if algorithm != ALGORITHM:
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(digest_b64)
        rounds = int(iterations)
    except ValueError:
        return False

    actual = hashlib.pbkdf2_hmac("sha256", pin.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(actual, expected)


# --- Card numbers ---

def luhn_check_digit(partial: str) -> str:
    """Compute the Luhn check digit for a string of digits."""
    total = 0
    # Walk right to left; the digit next to the check digit is doubled
    for position, char in enumerate(reversed(partial)):
        digit = int(char)
        if position % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return str((10 - total % 10) % 10)


def is_luhn_valid(number: str) -> bool:
    if not number.isdigit() or len(number) < 2:
        return False
    return luhn_check_digit(number[:-1]) == number[-1]


def generate_card_number(bin_prefix: str | None = None, length: int = 16) -> str:
    """Generate a random Luhn-valid card number starting with the BIN."""
    if bin_prefix is None:
        bin_prefix = get_settings().CARD_BIN
    body_length = length - len(bin_prefix) - 1
    body = "".join(str(secrets.randbelow(10)) for _ in range(body_length))
    partial = bin_prefix + body
    return partial + luhn_check_digit(partial)


def mask_card_number(number: str) -> str:
    """Render a card number as ``9410-****-****-1234``."""
    return f"{number[:4]}-****-****-{number[-4:]}"
