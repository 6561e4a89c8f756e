"""
Frame conversion for the window: vertical flip, RGBA layout and whole-pixel
scaling. Pure numpy, no window needed.
"""
import numpy as np

from chip8.raster import fit_scale, plane_to_rgba


class TestPlaneToRgba:

    def test_shape_and_alpha(self):
        rgba = plane_to_rgba(np.zeros((32, 64), dtype=np.uint8), 1)
        assert rgba.shape == (32, 64, 4)
        assert rgba.dtype == np.uint8
        assert (rgba[..., 3] == 255).all()
        assert not rgba[..., :3].any()

    def test_rows_flipped_for_bottom_up_origin(self):
        plane = np.zeros((32, 64), dtype=np.uint8)
        plane[0, 5] = 1
        rgba = plane_to_rgba(plane, 1)
        assert rgba[31, 5].tolist() == [255, 255, 255, 255]
        assert rgba[0, 5].tolist() == [0, 0, 0, 255]

    def test_scaled_pixels_are_blocks(self):
        plane = np.zeros((32, 64), dtype=np.uint8)
        plane[31, 0] = 1
        rgba = plane_to_rgba(plane, 3)
        assert rgba.shape == (96, 192, 4)
        assert (rgba[0:3, 0:3, :3] == 255).all()
        assert rgba[..., 0].sum() == 9 * 255


class TestFitScale:

    def test_standard_plane(self):
        assert fit_scale((32, 64), (640, 320)) == 10

    def test_extended_plane_even_scale(self):
        assert fit_scale((64, 128), (640, 320)) == 5

    def test_extended_plane_odd_scale_rounds_down(self):
        assert fit_scale((64, 128), (192, 96)) == 1

    def test_never_below_one(self):
        assert fit_scale((64, 128), (64, 32)) == 1
