def validate_nickname(nickname: str) -> bool:
    """
    A nickname is accepted as long as it has something besides whitespace.
    The server owns any further rules (uniqueness, length).
    """
    if not nickname:
        return False
    return bool(nickname.strip())


def validate_message_length(message: str, max_length: int = 1000) -> bool:
    """
    Blank or whitespace-only text never goes on the wire.
    max_length <= 0 disables the upper bound.
    """
    if not message or not message.strip():
        return False
    if max_length <= 0:
        return True
    return len(message) <= max_length
