import secrets


def new_id() -> str:
    """24 karakterlik onaltılık belge kimliği üretir."""
    return secrets.token_hex(12)
