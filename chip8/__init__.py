from .config import Config
from .engine import Chip8
from .errors import Chip8Error, UnreadableImage, ImageTooLarge, StackOverflow, StackUnderflow

__all__ = [
    "Chip8", "Config",
    "Chip8Error", "UnreadableImage", "ImageTooLarge", "StackOverflow", "StackUnderflow",
]
__version__ = "0.1.0"
