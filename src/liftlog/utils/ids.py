"""Client-generated identifiers."""

from uuid import uuid4


def new_id() -> str:
    """Return a fresh entity id, stable across the local/remote boundary."""
    return str(uuid4())


def new_device_id() -> str:
    """Return a fresh device identity."""
    return f"device-{uuid4()}"
