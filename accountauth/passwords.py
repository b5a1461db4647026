"""Password and recovery key cryptography."""

import hashlib
import hmac
import re
import secrets
import string

CHARACTER_SET = string.digits + string.ascii_lowercase + string.ascii_uppercase
SALT_LENGTH = 20
RECOVERY_KEY_LENGTH = 40
DEFAULT_ITERATIONS = 100000

EMAIL_PATTERN = re.compile(
    r'^([A-Za-z0-9_\-\.])+\@([A-Za-z0-9_\-\.])+\.([A-Za-z]{2,4})$'
)


def _random_string(length: int) -> str:
    return ''.join(secrets.choice(CHARACTER_SET) for _ in range(length))


def generate_salt(length: int = SALT_LENGTH) -> str:
    """Generate a random alphanumeric salt."""
    return _random_string(length)


def generate_recovery_key(length: int = RECOVERY_KEY_LENGTH) -> str:
    """Generate a random alphanumeric recovery key."""
    return _random_string(length)


def hash_password(password: str, salt: str,
                  iterations: int = DEFAULT_ITERATIONS) -> str:
    """
    Derive a hex digest of ``password`` keyed by ``salt``.

    Uses PBKDF2-HMAC-SHA512. The same password, salt and iteration count
    always produce the same digest.
    """
    derived = hashlib.pbkdf2_hmac('sha512',
                                  password.encode('utf-8', 'surrogatepass'),
                                  salt.encode('utf-8', 'surrogatepass'),
                                  iterations)
    return derived.hex()


def check_password(password: str, salt: str, expected_hash: str,
                   iterations: int = DEFAULT_ITERATIONS) -> bool:
    """Check a password against a stored hash."""
    return hmac.compare_digest(hash_password(password, salt, iterations),
                               expected_hash)


def is_valid_email(address: str) -> bool:
    """Returns true if the address looks like an e-mail address."""
    return bool(address) and EMAIL_PATTERN.match(address) is not None
