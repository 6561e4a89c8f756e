# CHIP-8 Virtual Machine:
# Input  - store key input states and check these per cycle.
# Output - 64x32 display (128x64 in extended mode), each pixel either on or off (0 || 1).
# CPU    - Cowgod's CHIP8 Technical reference http://devernay.free.fr/hacks/chip8/C8TECH10.HTM#0.0
#          plus the Super-CHIP exit/resolution/large-font extensions.
# Memory - 4096 bytes which includes: the fonts and the inputted ROM.
#----------------------------------------------------------------------------------------------
# Timers count down once per executed instruction, so the driving loop's cadence
# sets both the emulation speed and the timer decay rate.

import logging
import random

import numpy as np

from .constants import (
    MEMORY_SIZE, PROGRAM_START, MAX_ROM_SIZE, NUM_REGISTERS, FLAG, STACK_SIZE, NUM_KEYS,
    WIDTH, HEIGHT, EXT_WIDTH, EXT_HEIGHT,
    SMALL_FONT_ADDR, SMALL_GLYPH_SIZE, LARGE_FONT_ADDR, LARGE_GLYPH_SIZE, FONTSET, LARGE_FONTSET,
)
from .errors import ImageTooLarge, StackOverflow, StackUnderflow
from .rom import read_rom

log = logging.getLogger(__name__)

ADDR_MASK = MEMORY_SIZE - 1


class Chip8:
    """The interpreter: owns all machine state and mutates it one step at a time.

    Only ``load``/``load_rom``, ``step``, the key setters and ``quit`` change
    state; everything else is exposed through read-only properties.
    """

    def __init__(self, rng=None, on_silence=None):
        # ---- CPU state ----
        self._memory = bytearray(MEMORY_SIZE)
        self._V = bytearray(NUM_REGISTERS)   # bytearray rejects anything outside 0..255
        self._I = 0
        self._pc = PROGRAM_START
        self._stack = []
        self._delay = 0
        self._sound = 0
        self._keys = [False] * NUM_KEYS
        self._opcode = 0
        self._x = 0
        self._y = 0

        # ---- Display ----
        self._planes = {
            False: np.zeros((HEIGHT, WIDTH), dtype=np.uint8),
            True: np.zeros((EXT_HEIGHT, EXT_WIDTH), dtype=np.uint8),
        }
        self._extended = False
        self._draw_pending = False

        self._running = True
        self._waiting = False
        self._rng = rng if rng is not None else random.Random()
        self._on_silence = on_silence

        # Load fontsets into memory
        self._memory[SMALL_FONT_ADDR:SMALL_FONT_ADDR + len(FONTSET)] = bytes(FONTSET)
        self._memory[LARGE_FONT_ADDR:LARGE_FONT_ADDR + len(LARGE_FONTSET)] = bytes(LARGE_FONTSET)

        self.setup_funcmap()

    # ---- Opcode function map ----
    def setup_funcmap(self):
        self.funcmap = {
            0x0: self._0nnn,  # 00E0 / 00EE / 00FD / 00FE / 00FF - screen, return and Super-CHIP controls
            0x1: self._1nnn,  # 1nnn - Jump to a specific memory address
            0x2: self._2nnn,  # 2nnn - Call a function (subroutine) at a memory address
            0x3: self._3xkk,  # 3xkk - Skip next instruction if a register equals a specific number
            0x4: self._4xkk,  # 4xkk - Skip next instruction if a register does NOT equal a number
            0x5: self._5xy0,  # 5xy0 - Skip next instruction if two registers are equal
            0x6: self._6xkk,  # 6xkk - Set a register to a specific number
            0x7: self._7xkk,  # 7xkk - Add a number to a register
            0x8: self._8xxx,  # 8xy0..8xyE - Math and logic operations between two registers
            0x9: self._9xy0,  # 9xy0 - Skip next instruction if two registers are NOT equal
            0xA: self._Annn,  # Annn - Set the memory pointer (I) to a specific address
            0xB: self._Bnnn,  # Bnnn - Jump to an address plus the value of register V0
            0xC: self._Cxkk,  # Cxkk - Set a register to a random number ANDed with a value
            0xD: self._Dxyn,  # Dxyn - Draw a sprite on the screen at X,Y coordinates
            0xE: self._Exxx,  # Ex9E / ExA1 - Skip next instruction if a key is pressed or not pressed
            0xF: self._Fxxx,  # Fx07..Fx65 - timers, memory storage, and waiting for keys
        }
        self.sysmap = {
            0x00E0: self._00E0,
            0x00EE: self._00EE,
            0x00FD: self._00FD,
            0x00FE: self._00FE,
            0x00FF: self._00FF,
        }
        self.alumap = {
            0x0: self._8xy0,
            0x1: self._8xy1,
            0x2: self._8xy2,
            0x3: self._8xy3,
            0x4: self._8xy4,
            0x5: self._8xy5,
            0x6: self._8xy6,
            0x7: self._8xy7,
            0xE: self._8xyE,
        }
        self.skipmap = {
            0x9E: self._Ex9E,
            0xA1: self._ExA1,
        }
        self.miscmap = {
            0x07: self._Fx07,
            0x0A: self._Fx0A,
            0x15: self._Fx15,
            0x18: self._Fx18,
            0x1E: self._Fx1E,
            0x29: self._Fx29,
            0x30: self._Fx30,
            0x33: self._Fx33,
            0x55: self._Fx55,
            0x65: self._Fx65,
        }

    # ---- Load ROM ----
    def load(self, data):
        data = bytes(data)
        if len(data) > MAX_ROM_SIZE:
            raise ImageTooLarge(len(data))
        self._memory[PROGRAM_START:PROGRAM_START + len(data)] = data
        log.info("Loaded %d bytes at 0x%03X", len(data), PROGRAM_START)

    def load_rom(self, path):
        self.load(read_rom(path))

    # ---- Input ----
    def set_key(self, key, pressed):
        if not 0 <= key < NUM_KEYS:
            raise ValueError("key must be in 0x0..0xF, got %r" % (key,))
        self._keys[key] = bool(pressed)

    def press(self, key):
        self.set_key(key, True)

    def release(self, key):
        self.set_key(key, False)

    def release_all(self):
        self._keys = [False] * NUM_KEYS

    def quit(self):
        self._running = False

    # ---- Output ----
    def frame(self):
        """Hand the active plane to a renderer and clear the draw-pending flag."""
        self._draw_pending = False
        return self._plane.copy()

    @property
    def _plane(self):
        return self._planes[self._extended]

    @property
    def framebuffer(self):
        return self._plane.copy()

    @property
    def resolution(self):
        height, width = self._plane.shape
        return width, height

    # ---- State inspection ----
    @property
    def pc(self):
        return self._pc

    @property
    def index(self):
        return self._I

    @property
    def registers(self):
        return bytes(self._V)

    @property
    def stack(self):
        return tuple(self._stack)

    @property
    def delay_timer(self):
        return self._delay

    @property
    def sound_timer(self):
        return self._sound

    @property
    def keys(self):
        return tuple(self._keys)

    @property
    def memory(self):
        return memoryview(self._memory).toreadonly()

    @property
    def opcode(self):
        return self._opcode

    @property
    def running(self):
        return self._running

    @property
    def draw_pending(self):
        return self._draw_pending

    @property
    def extended(self):
        return self._extended

    @property
    def waiting_for_key(self):
        return self._waiting

    # ---- Cycle ----
    def step(self):
        pc = self._pc

        # Fetch opcode
        self._opcode = (self._memory[pc] << 8) | self._memory[(pc + 1) & ADDR_MASK]

        # Extract registers
        self._x = (self._opcode & 0x0F00) >> 8
        self._y = (self._opcode & 0x00F0) >> 4
        self._waiting = False

        # Default PC increment; jumps overwrite it, skips add another 2
        self._pc = (pc + 2) & ADDR_MASK
        self.funcmap[self._opcode >> 12]()

        # Fx0A stalls without consuming timer ticks
        if self._waiting:
            return

        self._tick_timers()

    def _tick_timers(self):
        if self._delay > 0:
            self._delay -= 1
        if self._sound > 0:
            self._sound -= 1
            if self._sound == 0:
                log.debug("Sound stops")
                if self._on_silence is not None:
                    self._on_silence()

    def _skip(self):
        self._pc = (self._pc + 2) & ADDR_MASK

    def _unknown(self):
        log.warning("Unknown opcode: 0x%04X", self._opcode)

    # ---- Opcode Handlers ----

    # 00E0 / 00EE / 00FD / 00FE / 00FF; any other 0nnn (SYS call) is not supported
    def _0nnn(self):
        handler = self.sysmap.get(self._opcode)
        if handler is None:
            self._unknown()
        else:
            handler()

    def _00E0(self):
        # CLS
        self._plane.fill(0)
        self._draw_pending = True
        log.debug("Clear the display (all pixels turned off)")

    def _00EE(self):
        # RET
        if not self._stack:
            raise StackUnderflow((self._pc - 2) & ADDR_MASK)
        self._pc = self._stack.pop()
        log.debug("Return to 0x%03X", self._pc)

    def _00FD(self):
        # EXIT
        self._running = False
        log.debug("Exit interpreter")

    def _00FE(self):
        # LOW
        self._extended = False
        self._draw_pending = True
        log.debug("Standard resolution (64x32)")

    def _00FF(self):
        # HIGH
        self._extended = True
        self._draw_pending = True
        log.debug("Extended resolution (128x64)")

    # 1nnn - Jump to address NNN
    def _1nnn(self):
        self._pc = self._opcode & 0x0FFF
        log.debug("Jump to address 0x%03X", self._pc)

    # 2nnn - Call subroutine at NNN
    def _2nnn(self):
        if len(self._stack) >= STACK_SIZE:
            raise StackOverflow((self._pc - 2) & ADDR_MASK)
        self._stack.append(self._pc)
        self._pc = self._opcode & 0x0FFF
        log.debug("Call subroutine at 0x%03X", self._pc)

    # 3xkk - Skip next instruction if Vx == kk
    def _3xkk(self):
        kk = self._opcode & 0xFF
        log.debug("Skip if V%X == %d", self._x, kk)
        if self._V[self._x] == kk:
            self._skip()

    # 4xkk - Skip next instruction if Vx != kk
    def _4xkk(self):
        kk = self._opcode & 0xFF
        log.debug("Skip if V%X != %d", self._x, kk)
        if self._V[self._x] != kk:
            self._skip()

    # 5xy0 - Skip next instruction if Vx == Vy
    def _5xy0(self):
        if self._opcode & 0xF:
            self._unknown()
            return
        log.debug("Skip if V%X == V%X", self._x, self._y)
        if self._V[self._x] == self._V[self._y]:
            self._skip()

    # 6xkk - Set Vx = kk
    def _6xkk(self):
        self._V[self._x] = self._opcode & 0xFF
        log.debug("Set V%X = %d", self._x, self._V[self._x])

    # 7xkk - Add immediate, no carry
    def _7xkk(self):
        self._V[self._x] = (self._V[self._x] + (self._opcode & 0xFF)) & 0xFF
        log.debug("Add %d to V%X: %d", self._opcode & 0xFF, self._x, self._V[self._x])

    # 8xy0..8xyE; add/sub write VF after Vx so the flag wins when x == F
    def _8xxx(self):
        handler = self.alumap.get(self._opcode & 0xF)
        if handler is None:
            self._unknown()
        else:
            handler(self._x, self._y)

    def _8xy0(self, x, y):
        self._V[x] = self._V[y]
        log.debug("Copy V%X (%d) into V%X", y, self._V[y], x)

    def _8xy1(self, x, y):
        self._V[x] |= self._V[y]
        log.debug("V%X = V%X OR V%X -> %d", x, x, y, self._V[x])

    def _8xy2(self, x, y):
        self._V[x] &= self._V[y]
        log.debug("V%X = V%X AND V%X -> %d", x, x, y, self._V[x])

    def _8xy3(self, x, y):
        self._V[x] ^= self._V[y]
        log.debug("V%X = V%X XOR V%X -> %d", x, x, y, self._V[x])

    def _8xy4(self, x, y):
        total = self._V[x] + self._V[y]
        self._V[x] = total & 0xFF
        self._V[FLAG] = 1 if total > 0xFF else 0
        log.debug("Add V%X to V%X: result %d, carry=%d", y, x, self._V[x], self._V[FLAG])

    def _8xy5(self, x, y):
        vx, vy = self._V[x], self._V[y]
        self._V[x] = (vx - vy) & 0xFF
        self._V[FLAG] = 0 if vy > vx else 1
        log.debug("Subtract V%X from V%X: result %d, NOT borrow=%d", y, x, self._V[x], self._V[FLAG])

    # shifts store the outgoing bit first, so the shifted value wins when x == F
    def _8xy6(self, x, y):
        self._V[FLAG] = self._V[x] & 1
        self._V[x] >>= 1
        log.debug("Shift V%X right by 1: %d", x, self._V[x])

    def _8xy7(self, x, y):
        vx, vy = self._V[x], self._V[y]
        self._V[x] = (vy - vx) & 0xFF
        self._V[FLAG] = 0 if vx > vy else 1
        log.debug("Set V%X = V%X - V%X: result %d, NOT borrow=%d", x, y, x, self._V[x], self._V[FLAG])

    def _8xyE(self, x, y):
        self._V[FLAG] = (self._V[x] >> 7) & 1
        self._V[x] = (self._V[x] << 1) & 0xFF
        log.debug("Shift V%X left by 1: %d", x, self._V[x])

    # 9xy0 - Skip next instruction if Vx != Vy
    def _9xy0(self):
        if self._opcode & 0xF:
            self._unknown()
            return
        log.debug("Skip if V%X != V%X", self._x, self._y)
        if self._V[self._x] != self._V[self._y]:
            self._skip()

    # Annn - Set I = NNN
    def _Annn(self):
        self._I = self._opcode & 0x0FFF
        log.debug("Set I = 0x%03X", self._I)

    # Bnnn - Jump to address NNN + V0
    def _Bnnn(self):
        self._pc = ((self._opcode & 0x0FFF) + self._V[0]) & ADDR_MASK
        log.debug("Jump to address V0 + 0x%03X = 0x%03X", self._opcode & 0x0FFF, self._pc)

    # Cxkk - RND Vx, byte
    def _Cxkk(self):
        self._V[self._x] = self._rng.getrandbits(8) & (self._opcode & 0xFF)
        log.debug("Set V%X = random_byte & %d -> %d", self._x, self._opcode & 0xFF, self._V[self._x])

    # Dxyn - DRW Vx, Vy, nibble
    def _Dxyn(self):
        """XOR an 8-pixel-wide, n-row sprite from memory[I] onto the active plane.

        Both the start coordinate and every pixel wrap around the plane edges.
        VF is set to 1 when any lit pixel gets switched off.
        """
        plane = self._plane
        height, width = plane.shape
        px = self._V[self._x]
        py = self._V[self._y]
        collision = 0

        for row in range(self._opcode & 0xF):
            sprite = self._memory[(self._I + row) & ADDR_MASK]
            if sprite == 0:
                continue
            y = (py + row) % height
            for bit in range(8):
                if sprite & (0x80 >> bit):
                    x = (px + bit) % width
                    if plane[y, x]:
                        collision = 1
                    plane[y, x] ^= 1

        self._V[FLAG] = collision
        self._draw_pending = True
        log.debug("Drew sprite at (%d, %d), collision=%d", px, py, collision)

    # Ex9E / ExA1 - SKP / SKNP
    def _Exxx(self):
        handler = self.skipmap.get(self._opcode & 0xFF)
        if handler is None:
            self._unknown()
        else:
            handler(self._V[self._x] & 0xF)

    def _Ex9E(self, key):
        log.debug("Skip if key 0x%X is pressed", key)
        if self._keys[key]:
            self._skip()

    def _ExA1(self, key):
        log.debug("Skip if key 0x%X is not pressed", key)
        if not self._keys[key]:
            self._skip()

    # Fx07..Fx65 - timers, memory, I, and key input
    def _Fxxx(self):
        handler = self.miscmap.get(self._opcode & 0xFF)
        if handler is None:
            self._unknown()
        else:
            handler(self._x)

    def _Fx07(self, x):
        self._V[x] = self._delay
        log.debug("Set V%X = delay timer (%d)", x, self._delay)

    def _Fx0A(self, x):
        # LD Vx, K: wait for a key press (stall); the highest pressed key wins
        pressed = None
        for i, down in enumerate(self._keys):
            if down:
                pressed = i
        if pressed is None:
            self._pc = (self._pc - 2) & ADDR_MASK  # re-execute this instruction next step
            self._waiting = True
            log.debug("Waiting for key press into V%X", x)
        else:
            self._V[x] = pressed
            log.debug("Key 0x%X pressed, stored in V%X", pressed, x)

    def _Fx15(self, x):
        self._delay = self._V[x]
        log.debug("Set delay timer = V%X (%d)", x, self._delay)

    def _Fx18(self, x):
        self._sound = self._V[x]
        log.debug("Set sound timer = V%X (%d)", x, self._sound)

    def _Fx1E(self, x):
        # VF on range overflow is undocumented, kept for compatibility
        total = self._I + self._V[x]
        self._I = total & 0xFFFF
        self._V[FLAG] = 1 if total > 0xFFF else 0
        log.debug("Add V%X to I: 0x%03X, overflow=%d", x, self._I, self._V[FLAG])

    def _Fx29(self, x):
        self._I = SMALL_FONT_ADDR + self._V[x] * SMALL_GLYPH_SIZE
        log.debug("Set I = small glyph for V%X: 0x%03X", x, self._I)

    def _Fx30(self, x):
        self._I = LARGE_FONT_ADDR + (self._V[x] & 0xF) * LARGE_GLYPH_SIZE
        log.debug("Set I = large glyph for V%X: 0x%03X", x, self._I)

    def _Fx33(self, x):
        val = self._V[x]
        self._memory[self._I & ADDR_MASK] = val // 100
        self._memory[(self._I + 1) & ADDR_MASK] = (val // 10) % 10
        self._memory[(self._I + 2) & ADDR_MASK] = val % 10
        log.debug("Store BCD of V%X (%d) at 0x%03X", x, val, self._I)

    def _Fx55(self, x):
        for i in range(x + 1):
            self._memory[(self._I + i) & ADDR_MASK] = self._V[i]
        log.debug("Store V0..V%X at 0x%03X", x, self._I)

    def _Fx65(self, x):
        for i in range(x + 1):
            self._V[i] = self._memory[(self._I + i) & ADDR_MASK]
        log.debug("Load V0..V%X from 0x%03X", x, self._I)
