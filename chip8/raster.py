import numpy as np


def fit_scale(plane_shape, window_size):
    """Largest whole-pixel scale at which the plane still fits in the window."""
    height, width = plane_shape
    window_width, window_height = window_size
    return max(1, min(window_width // width, window_height // height))


def plane_to_rgba(plane, scale):
    """Turn a 0/1 plane into upscaled RGBA pixels, bottom row first for pyglet."""
    height, width = plane.shape
    rgba = np.empty((height, width, 4), dtype=np.uint8)
    rgba[..., :3] = plane[::-1, :, None] * 255
    rgba[..., 3] = 255
    if scale != 1:
        rgba = np.repeat(np.repeat(rgba, scale, axis=0), scale, axis=1)
    return rgba
