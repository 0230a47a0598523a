"""Generation and validation of record identifiers."""

import uuid


def new_id() -> str:
    """Generate a new record identifier."""
    return str(uuid.uuid4())


def is_valid_id(value: str) -> bool:
    """Check whether a string is a well-formed record identifier.

    Args:
        value: Candidate identifier

    Returns:
        bool: True if the value parses as a UUID, False otherwise
    """
    try:
        uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return False
    return True
