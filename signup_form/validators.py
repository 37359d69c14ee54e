"""Per-field checks over raw form text. All of them are total functions."""

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


def is_username_valid(username: str) -> bool:
    return len(username) >= MIN_USERNAME_LENGTH


def is_password_empty(password: str) -> bool:
    return len(password) == 0


def is_password_length_sufficient(password: str) -> bool:
    return len(password) >= MIN_PASSWORD_LENGTH


def is_password_matched(password: str, confirm_password: str) -> bool:
    return password == confirm_password


async def check_password_pwned(password: str) -> bool:
    """Placeholder for a breached-password lookup.

    Reports every password as not pwned until a real lookup is plugged in.
    The result is exposed by the controller but never affects form validity.
    """
    return False
