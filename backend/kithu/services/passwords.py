"""Password hashing with bcrypt."""
import bcrypt

BCRYPT_MAX_BYTES = 72

# Checked against when the email is unknown so login timing does not reveal
# whether an account exists.
_DUMMY_HASH = bcrypt.hashpw(b"kithu-dummy-password", bcrypt.gensalt())


def _password_bytes(password: str) -> bytes:
    # bcrypt only ever used the first 72 bytes; newer releases refuse longer input
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(
        _password_bytes(password),
        bcrypt.gensalt(),
    ).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash.

    A missing hash still costs one bcrypt check and always fails.
    """
    try:
        if hashed_password is None:
            bcrypt.checkpw(_password_bytes(plain_password), _DUMMY_HASH)
            return False
        return bcrypt.checkpw(
            _password_bytes(plain_password),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash
        return False
