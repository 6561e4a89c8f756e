import logging

from .errors import UnreadableImage

log = logging.getLogger(__name__)


def read_rom(path):
    """Read a program image from disk; images are raw opcodes with no header."""
    log.info("Loading ROM: %s", path)
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise UnreadableImage(path, e.strerror or str(e)) from e
