# We're subclassing pyglet (that'll handle graphics and keyboard handling)
# and overriding whatever def we need from there. The window is the only
# owner of the GL resources; use it as a context manager so it is closed on
# every exit path.

import logging

import pyglet
from pyglet.window import key

from .errors import Chip8Error
from .raster import fit_scale, plane_to_rgba

log = logging.getLogger(__name__)

# keep pixels sharp when the frame is stretched to the window
pyglet.image.Texture.default_min_filter = pyglet.gl.GL_NEAREST
pyglet.image.Texture.default_mag_filter = pyglet.gl.GL_NEAREST

# Key mapping - maps physical keyboard keys to the CHIP-8 keypad
KEYMAP = {
    key._1: 0x1, key._2: 0x2, key._3: 0x3, key._4: 0xC,
    key.Q: 0x4, key.W: 0x5, key.E: 0x6, key.R: 0xD,
    key.A: 0x7, key.S: 0x8, key.D: 0x9, key.F: 0xE,
    key.Z: 0xA, key.X: 0x0, key.C: 0xB, key.V: 0xF,
}


class Chip8Window(pyglet.window.Window):

    def __init__(self, chip8, config):
        width, height = config.window_size
        super().__init__(width=width, height=height, caption=config.caption, resizable=False, vsync=False)
        self.chip8 = chip8
        self.config = config
        self.error = None
        self._released = False

        # ---- Performance Counters ----
        self._cycle_count = 0
        self.stats_label = pyglet.text.Label(
            "Cycles/s: 0",
            font_size=12,
            x=5,
            y=height - 15,
            anchor_x='left',
            anchor_y='center',
            color=(255, 255, 255, 255)
        )

        self.image = None
        self.present()

        # Schedule CPU ticks
        pyglet.clock.schedule_interval(self.tick, config.step_interval)
        if config.show_stats:
            pyglet.clock.schedule_interval(self._update_stats, 1.0)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def release(self):
        if self._released:
            return
        self._released = True
        pyglet.clock.unschedule(self.tick)
        pyglet.clock.unschedule(self._update_stats)
        self.close()

    def _update_stats(self, dt):
        self.stats_label.text = f"Cycles/s: {self._cycle_count}"
        self._cycle_count = 0

    # ---- CPU cycle ----
    def tick(self, dt):
        chip8 = self.chip8
        steps = min(max(1, round(dt * self.config.cpu_hz)), self.config.max_steps_per_tick)
        try:
            for _ in range(steps):
                if not chip8.running:
                    break
                chip8.step()
                self._cycle_count += 1
        except Chip8Error as e:
            log.error("Emulation error: %s", e)
            self.error = e
            chip8.quit()

        if chip8.draw_pending:
            self.present()
        if not chip8.running:
            pyglet.app.exit()

    # ---- Drawing ----
    def present(self):
        plane = self.chip8.frame()
        height, width = plane.shape
        scale = fit_scale(plane.shape, (self.width, self.height))
        rgba = plane_to_rgba(plane, scale)
        self.image = pyglet.image.ImageData(width * scale, height * scale, 'RGBA', rgba.tobytes())

    def on_draw(self):
        self.clear()
        # stretch the remainder when the window is not a whole multiple of the plane (odd CHIP8_SCALE)
        self.image.blit(0, 0, width=self.width, height=self.height)
        if self.config.show_stats:
            self.stats_label.draw()

    # ---- Input ----
    def on_key_press(self, symbol, modifiers):
        if symbol == key.ESCAPE:
            self.chip8.quit()
        elif symbol == key.F1:
            logger = logging.getLogger("chip8")
            logger.setLevel(logging.INFO if logger.isEnabledFor(logging.DEBUG) else logging.DEBUG)
            log.info("trace logging: %s", logger.isEnabledFor(logging.DEBUG))
        elif symbol in KEYMAP:
            self.chip8.press(KEYMAP[symbol])

    def on_key_release(self, symbol, modifiers):
        if symbol in KEYMAP:
            self.chip8.release(KEYMAP[symbol])

    def on_close(self):
        self.chip8.quit()
        pyglet.app.exit()


def run(chip8, config):
    """Drive ``chip8`` until it halts or the user quits; return the error that stopped it, if any."""
    with Chip8Window(chip8, config) as window:
        pyglet.app.run()
    return window.error
