from chip8 import Chip8


def program(*words):
    """Assemble 16-bit opcodes into a big-endian ROM image."""
    return b"".join(w.to_bytes(2, "big") for w in words)


def run(*words, steps=None, **kwargs):
    """Load ``words`` at 0x200 and execute ``steps`` instructions (default: one per word)."""
    chip8 = Chip8(**kwargs)
    chip8.load(program(*words))
    for _ in range(len(words) if steps is None else steps):
        chip8.step()
    return chip8
