import logging
import sys

from .config import Config
from .engine import Chip8
from .errors import Chip8Error

USAGE = "Usage: chip8 <rom-file>"


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print(USAGE, file=sys.stderr)
        return 1

    try:
        config = Config.from_env()
    except ValueError as e:
        print("Error: %s" % e, file=sys.stderr)
        return 1

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    if config.trace:
        logging.getLogger("chip8").setLevel(logging.DEBUG)

    chip8 = Chip8()
    try:
        chip8.load_rom(argv[0])
    except Chip8Error as e:
        print("Error: %s" % e, file=sys.stderr)
        return 1

    # the window is only opened once the ROM is known to be good
    from .display import run
    error = run(chip8, config)
    return 1 if error is not None else 0
