"""Stable per-installation device identity."""

from pathlib import Path

from ..log import get_logger
from ..utils import new_device_id

logger = get_logger(__name__)


def get_or_create_device_id(path: Path) -> str:
    """Read the device id stored at ``path``, generating it on first use."""
    path = Path(path)
    if path.exists():
        device_id = path.read_text().strip()
        if device_id:
            return device_id

    device_id = new_device_id()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(device_id + "\n")
    logger.info("device id created", device_id=device_id)
    return device_id
