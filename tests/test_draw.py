"""
Framebuffer tests: sprite XOR drawing, collision, wrap-around and the two
resolution planes.
"""
import numpy as np

from chip8 import Chip8
from helpers import run

# rows of the built-in "0" glyph, MSB first
ZERO = [
    [1, 1, 1, 1, 0, 0, 0, 0],
    [1, 0, 0, 1, 0, 0, 0, 0],
    [1, 0, 0, 1, 0, 0, 0, 0],
    [1, 0, 0, 1, 0, 0, 0, 0],
    [1, 1, 1, 1, 0, 0, 0, 0],
]


class TestSprite:

    def test_draw_glyph(self):
        # V0 = V1 = 0, I = glyph "0"
        chip8 = run(0xA000, 0xD015)
        fb = chip8.framebuffer
        assert fb[0:5, 0:8].tolist() == ZERO
        assert fb.sum() == 14
        assert chip8.registers[0xF] == 0
        assert chip8.draw_pending

    def test_draw_at_offset(self):
        chip8 = run(0x600A, 0x6103, 0xA000, 0xD015)
        fb = chip8.framebuffer
        assert fb[3:8, 10:18].tolist() == ZERO
        assert fb.sum() == 14

    def test_draw_twice_erases(self):
        chip8 = run(0xA000, 0xD015, 0xD015)
        assert not chip8.framebuffer.any()
        assert chip8.registers[0xF] == 1

    def test_partial_overlap_collision(self):
        # glyph "1" (0x20 0x60 0x20 0x20 0x70) on top of glyph "0"
        chip8 = run(0xA000, 0xD015, 0xA005, 0xD015)
        assert chip8.registers[0xF] == 1

    def test_no_collision_clears_flag(self):
        chip8 = run(0x6F01, 0xA000, 0xD015)
        assert chip8.registers[0xF] == 0

    def test_zero_rows(self):
        chip8 = run(0x6F01, 0xD010)
        assert not chip8.framebuffer.any()
        assert chip8.registers[0xF] == 0
        assert chip8.draw_pending

    def test_index_unchanged(self):
        assert run(0xA000, 0xD015).index == 0

    def test_clear_draw_clear_matches_fresh(self):
        chip8 = run(0x00E0, 0xA000, 0xD015, 0x6008, 0xD015, 0x00E0, steps=5)
        assert chip8.framebuffer.any()
        chip8.step()
        assert np.array_equal(chip8.framebuffer, Chip8().framebuffer)


class TestWrap:

    def test_wraps_at_right_and_bottom_edges(self):
        chip8 = run(0x603E, 0x611F, 0xA000, 0xD012)
        fb = chip8.framebuffer
        # row 0xF0 at y=31 spans x=62,63,0,1
        assert [fb[31, x] for x in (62, 63, 0, 1, 2)] == [1, 1, 1, 1, 0]
        # row 0x90 wraps to y=0
        assert [fb[0, x] for x in (62, 63, 0, 1)] == [1, 0, 0, 1]
        assert fb.sum() == 6

    def test_start_coordinate_wraps(self):
        # x = 70 -> 6, y = 33 -> 1
        chip8 = run(0x6046, 0x6121, 0xA000, 0xD011)
        fb = chip8.framebuffer
        assert fb[1, 6:10].tolist() == [1, 1, 1, 1]
        assert fb.sum() == 4

    def test_extended_plane_wraps_at_its_own_bounds(self):
        chip8 = run(0x00FF, 0x607E, 0x613F, 0xA000, 0xD012)
        fb = chip8.framebuffer
        assert fb.shape == (64, 128)
        assert [fb[63, x] for x in (126, 127, 0, 1)] == [1, 1, 1, 1]
        assert fb[0, 126] == 1
        assert fb[0, 1] == 1
        assert fb.sum() == 6


class TestPlanes:

    def test_extended_draw_leaves_standard_plane(self):
        chip8 = run(0x00FF, 0xA000, 0xD015, 0x00FE)
        assert not chip8.framebuffer.any()
        chip8 = run(0x00FF, 0xA000, 0xD015)
        assert chip8.framebuffer[0:5, 0:8].tolist() == ZERO

    def test_clear_only_touches_active_plane(self):
        chip8 = run(0xA000, 0xD015, 0x00FF, 0xD015, 0x00E0, 0x00FE, steps=5)
        assert not chip8.framebuffer.any()
        chip8.step()
        assert chip8.framebuffer.sum() == 14

    def test_switching_mode_preserves_planes(self):
        chip8 = run(0xA000, 0xD015, 0x00FF, 0x00FE, 0x0000, steps=4)
        assert chip8.framebuffer[0:5, 0:8].tolist() == ZERO
