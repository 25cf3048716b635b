import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
JOIN_CODE_LENGTH = 10
INVITE_CODE_LENGTH = 12


def secure_random_code(length: int = JOIN_CODE_LENGTH) -> str:
    """Generate a secure random alphanumeric code."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def join_code() -> str:
    """Default for Team.join_code."""
    return secure_random_code(JOIN_CODE_LENGTH)


def invite_code() -> str:
    """Default for TeamInvite.code."""
    return secure_random_code(INVITE_CODE_LENGTH)
