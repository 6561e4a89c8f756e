from .constants import MAX_ROM_SIZE


class Chip8Error(Exception):
    pass


class UnreadableImage(Chip8Error):
    def __init__(self, path, reason):
        super().__init__("Failed to open ROM %s: %s" % (path, reason))
        self.path = path
        self.reason = reason


class ImageTooLarge(Chip8Error):
    def __init__(self, size, limit=MAX_ROM_SIZE):
        super().__init__("ROM too large to load into memory (%d bytes, limit %d)" % (size, limit))
        self.size = size
        self.limit = limit


class StackOverflow(Chip8Error):
    def __init__(self, pc):
        super().__init__("Stack overflow on CALL at 0x%03X" % pc)
        self.pc = pc


class StackUnderflow(Chip8Error):
    def __init__(self, pc):
        super().__init__("Stack underflow on RET at 0x%03X" % pc)
        self.pc = pc
