import os
from dataclasses import dataclass

from .constants import WIDTH, HEIGHT

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off", "")


def _env_int(env, name, default):
    raw = env.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError("%s must be an integer, got %r" % (name, raw)) from None
    if value <= 0:
        raise ValueError("%s must be positive, got %d" % (name, value))
    return value


def _env_bool(env, name, default):
    raw = env.get(name)
    if raw is None:
        return default
    if raw.strip().lower() in _TRUE:
        return True
    if raw.strip().lower() in _FALSE:
        return False
    raise ValueError("%s must be a boolean, got %r" % (name, raw))


@dataclass
class Config:
    cpu_hz: int = 400           # one step every 2.5ms
    scale: int = 10             # window pixels per standard-mode pixel
    caption: str = "CHIP-8 Emulator"
    trace: bool = False         # make it true if you want the logs
    show_stats: bool = False    # FPS / cycles-per-second labels
    max_steps_per_tick: int = 64

    @property
    def window_size(self):
        return WIDTH * self.scale, HEIGHT * self.scale

    @property
    def step_interval(self):
        return 1.0 / self.cpu_hz

    @classmethod
    def from_env(cls, env=None):
        """Build a config from ``CHIP8_*`` environment variables."""
        env = os.environ if env is None else env
        return cls(
            cpu_hz=_env_int(env, "CHIP8_CPU_HZ", cls.cpu_hz),
            scale=_env_int(env, "CHIP8_SCALE", cls.scale),
            trace=_env_bool(env, "CHIP8_TRACE", cls.trace),
            show_stats=_env_bool(env, "CHIP8_SHOW_STATS", cls.show_stats),
        )
