# -*- coding: utf-8 -*-
"""
Pulse Bar – Animated multi-line progress bars for Python.
Copyright (c) 2025 Igor Iatsenko
Licensed under the MIT License.
"""

import sys
import time
import atexit
import string
import threading
from contextlib import contextmanager
from typing import (
        Protocol,
        Optional,
        Tuple,
        List,
        Callable,
        Iterable,
        Iterator,
        Union,
        TextIO,
)
from enum import Enum
import logging

__all__ = [
    'progress',
    'newline',
    'PulseBar',
    'TerminalSession',
    'FrameRenderer',
    'RateEstimator',
    'ThrottleGate',
    'Animation',
    'FrameAnimation',
    'PulseAnimation',
    'SpinnerAnimation',
    'SolidAnimation',
    'Color',
    'Colors',
    'format_time',
    'PulseBarError',
    'FormatError',
    'ConfigurationError',
]

logger = logging.getLogger('pulse-bar')


# ============================================================================
# Errors
# ============================================================================

class PulseBarError(Exception):
    """Base class for all pulse bar errors"""


class FormatError(PulseBarError, ValueError):
    """Raised when a color string is not a valid #RRGGBB value"""


class ConfigurationError(PulseBarError, ValueError):
    """Raised when a bar, session or animation is configured with invalid values"""


# ============================================================================
# Colors
# ============================================================================

class Color(Enum):
    """Named terminal colors, valued by their escape sequence"""
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    MAGENTA = '\033[35m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'
    GRAY = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'
    BRIGHT_WHITE = '\033[97m'
    RESET = '\033[0m'


ColorSpec = Union[Color, str]


class Colors:
    """ANSI color codes and utilities"""
    RESET = Color.RESET.value

    # Cursor control
    CURSOR_UP = '\033[{}A'
    CURSOR_DOWN = '\033[{}B'
    CLEAR_LINE = '\033[2K'

    @staticmethod
    def rgb(r: int, g: int, b: int) -> str:
        """Create 24-bit RGB color"""
        return f'\033[38;2;{r};{g};{b}m'

    @staticmethod
    def hex_to_rgb(value: str) -> Tuple[int, int, int]:
        """Parse a '#RRGGBB' string into its components"""
        if not isinstance(value, str) or len(value) != 7 or value[0] != '#':
            raise FormatError(f'Invalid hex color {value!r}, expected format: #RRGGBB')

        digits = value[1:]
        if any(c not in string.hexdigits for c in digits):
            raise FormatError(f'Invalid hex color {value!r}, expected format: #RRGGBB')

        return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)

    @staticmethod
    def rgb_to_hex(r: int, g: int, b: int) -> str:
        return '#{:02X}{:02X}{:02X}'.format(r, g, b)

    @staticmethod
    def encode(color: ColorSpec) -> str:
        """Map a named color or a '#RRGGBB' string to its escape sequence"""
        if isinstance(color, Color):
            return color.value
        return Colors.rgb(*Colors.hex_to_rgb(color))

    @staticmethod
    def gradient_blend(start: str, end: str) -> Callable[[int, int, int], str]:
        """Build a color callback fading from start to end across the bar columns"""
        start_rgb = Colors.hex_to_rgb(start)
        end_rgb = Colors.hex_to_rgb(end)

        def blend(column: int, width: int, percent: int) -> str:
            ratio = column / (width - 1) if width > 1 else 0.0
            r = int(start_rgb[0] + (end_rgb[0] - start_rgb[0]) * ratio)
            g = int(start_rgb[1] + (end_rgb[1] - start_rgb[1]) * ratio)
            b = int(start_rgb[2] + (end_rgb[2] - start_rgb[2]) * ratio)
            return Colors.rgb_to_hex(r, g, b)

        return blend


# ============================================================================
# Animations
# ============================================================================

class Animation(Protocol):
    """Produces the glyph shown at the head of an incomplete bar"""

    def frame(self, elapsed: float, percent: int) -> str:
        ...


class FrameAnimation:
    """Cycles through a fixed list of glyphs at a constant rate"""

    def __init__(self, frames: List[str], fps: float = 10.0):
        if not frames:
            raise ConfigurationError("frames must not be empty")
        if fps <= 0:
            raise ConfigurationError("fps must be positive")
        self.frames = list(frames)
        self.fps = fps

    def frame(self, elapsed: float, percent: int) -> str:
        return self.frames[int(elapsed * self.fps) % len(self.frames)]

    def __repr__(self):
        return f'{type(self).__name__}({self.frames!r}, fps={self.fps!r})'


class PulseAnimation(FrameAnimation):
    """Block glyph that grows and shrinks, giving the bar head a pulse"""

    FRAMES = ['▁', '▂', '▃', '▄', '▅', '▆', '▇', '█', '▇', '▆', '▅', '▄', '▃', '▂']

    def __init__(self, fps: float = 10.0):
        super().__init__(self.FRAMES, fps=fps)


class SpinnerAnimation(FrameAnimation):
    """Spinner glyphs in the bar head"""

    FRAMES_SNAKE = ['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏']
    FRAMES_DOTS = ['⣷', '⣯', '⣟', '⡿', '⢿', '⣻', '⣽', '⣾']
    FRAMES_ARROWS = ['←', '↖', '↑', '↗', '→', '↘', '↓', '↙']
    FRAMES_BOUNCING = ['⠁', '⠈', '⠐', '⠠', '⢀', '⡀', '⠄', '⠂']
    FRAMES_SPINNER = ['|', '/', '-', '\\']

    STYLES = {
        'snake': FRAMES_SNAKE,
        'dots': FRAMES_DOTS,
        'arrows': FRAMES_ARROWS,
        'bouncing': FRAMES_BOUNCING,
        'spinner': FRAMES_SPINNER,
    }

    def __init__(self, style: str = 'dots', fps: float = 10.0):
        if style not in self.STYLES:
            raise ConfigurationError(f"unknown spinner style {style!r}")
        self.style = style
        super().__init__(self.STYLES[style], fps=fps)


class SolidAnimation(FrameAnimation):
    """Static full block, for terminals where motion is unwanted"""

    def __init__(self, glyph: str = '█'):
        super().__init__([glyph])


class _CallableAnimation:
    """Adapts a plain (elapsed, percent) -> glyph function"""

    def __init__(self, fn: Callable[[float, int], str]):
        self._fn = fn

    def frame(self, elapsed: float, percent: int) -> str:
        return self._fn(elapsed, percent)


def _as_animation(animation: Union[Animation, Callable[[float, int], str], None]) -> Animation:
    if animation is None:
        return PulseAnimation()
    if isinstance(animation, type):
        raise ConfigurationError(f"animation must be an instance, got class {animation.__name__}")
    if hasattr(animation, 'frame'):
        return animation
    if callable(animation):
        return _CallableAnimation(animation)
    raise ConfigurationError("animation must provide frame(elapsed, percent) or be callable")


# ============================================================================
# Rate estimation and throttling
# ============================================================================

class RateEstimator:
    """Exponential moving average of seconds spent per unit of progress"""

    def __init__(self, smoothing: float = 0.3):
        self.smoothing = smoothing
        self.reset()

    @property
    def smoothing(self) -> float:
        return self._smoothing

    @smoothing.setter
    def smoothing(self, value: float):
        if not 0.0 < value <= 1.0:
            raise ConfigurationError("smoothing must be in (0, 1]")
        self._smoothing = value

    def reset(self):
        self.avg_rate = 0.0
        self.samples = 0

    def observe(self, delta_elapsed: float, delta_progress: float) -> float:
        """Fold one sample into the average and return the new average"""
        if delta_elapsed <= 0 or delta_progress <= 0:
            return self.avg_rate

        rate = delta_elapsed / delta_progress
        if self.samples == 0:
            self.avg_rate = rate
        else:
            self.avg_rate = self._smoothing * rate + (1 - self._smoothing) * self.avg_rate
        self.samples += 1
        return self.avg_rate

    def estimated_total_time(self, total: int) -> float:
        return self.avg_rate * total

    def remaining(self, total: int, elapsed: float) -> float:
        return max(0.0, self.estimated_total_time(total) - elapsed)

    @staticmethod
    def throughput(current: int, elapsed: float) -> float:
        if elapsed <= 0:
            return 0.0
        return current / elapsed


class ThrottleGate:
    """Admits a render only after both enough time and enough progress have passed"""

    def __init__(self, min_interval: float = 0.1, min_delta: int = 1):
        self.min_interval = min_interval
        self.min_delta = min_delta
        self.last_render_time = 0.0
        self.last_render_value = 0

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @min_interval.setter
    def min_interval(self, value: float):
        if value < 0:
            raise ConfigurationError("min_interval must be non-negative")
        self._min_interval = value

    @property
    def min_delta(self) -> int:
        return self._min_delta

    @min_delta.setter
    def min_delta(self, value: int):
        if value < 0:
            raise ConfigurationError("min_delta must be non-negative")
        self._min_delta = value

    @staticmethod
    def check(now_elapsed: float,
              now_value: int,
              last_render_time: float,
              last_render_value: int,
              min_interval: float,
              min_delta: int) -> bool:
        return (now_elapsed - last_render_time) >= min_interval and (now_value - last_render_value) >= min_delta

    def allow(self, now_elapsed: float, now_value: int) -> bool:
        return self.check(now_elapsed, now_value,
                          self.last_render_time, self.last_render_value,
                          self._min_interval, self._min_delta)

    def mark(self, now_elapsed: float, now_value: int):
        """Record a render as the reference point for the next decision"""
        self.last_render_time = now_elapsed
        self.last_render_value = now_value


# ============================================================================
# Frame rendering
# ============================================================================

def format_time(template: str, seconds: float) -> str:
    """Substitute %S (whole seconds) and %3N (milliseconds) in template"""
    seconds = max(0.0, seconds)
    whole = int(seconds)
    millis = int(seconds * 1000) % 1000
    return template.replace('%S', str(whole)).replace('%3N', '{:03d}'.format(millis))


class FrameRenderer:
    """Composes label, bar body, percentage and timing into one terminal frame"""

    char_complete = '█'
    char_blank = ' '
    percent_color = Color.BRIGHT_GREEN

    def render(self, bar: 'PulseBar', elapsed: float) -> str:
        percent = bar.percent
        return (self._render_label(bar) +
                self._render_body(bar, elapsed, percent) +
                self._render_time(bar, elapsed))

    def _render_label(self, bar: 'PulseBar') -> str:
        return f'{bar.label_color}{bar.label} {Colors.RESET}'

    def _render_body(self, bar: 'PulseBar', elapsed: float, percent: int) -> str:
        left, right = bar.bracket_fn(percent)
        filled = bar.filled
        incomplete = bar.current < bar.total

        parts = [left]
        for column in range(bar.width):
            if column < filled:
                parts.append(Colors.encode(bar.color_fn(column, bar.width, percent)) + self.char_complete)
            elif column == filled and incomplete:
                parts.append(Colors.encode(bar.color_fn(column, bar.width, percent)) +
                             bar.animation.frame(elapsed, percent))
            else:
                parts.append(Colors.RESET + self.char_blank)

        parts.append(Colors.RESET + right)
        parts.append(f' {Colors.encode(self.percent_color)}{percent}%{Colors.RESET}')
        return ''.join(parts)

    def _render_time(self, bar: 'PulseBar', elapsed: float) -> str:
        completed = bar.current == bar.total
        remaining = bar.remaining_time(elapsed)
        speed = bar.rate.throughput(bar.current, elapsed)

        prefix = 'Elapsed' if completed else 'ETA'
        source = elapsed if completed else remaining
        if bar.time_format:
            text = f'{prefix}: {format_time(bar.time_format, source)}s'
        else:
            text = f'{prefix}: {int(source)}s'

        return f'{bar.time_color} {text} [{speed:.2f}it/s]{Colors.RESET}'


# ============================================================================
# Terminal session - line coordination between bars
# ============================================================================

class TerminalSession:
    """
    Shared terminal state for every bar writing to one stream.

    Rows are counted from the row the cursor was on when the session started.
    Each bar gets its own row, handed out in construction order and never
    reused. All cursor movement and writes go through one reentrant lock.
    """
    _default: Optional['TerminalSession'] = None
    _default_lock = threading.Lock()

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._lock = threading.RLock()
        self._next_line_index = 0
        self._cursor_line = 0
        self._height = 1

    @classmethod
    def default(cls) -> 'TerminalSession':
        """Get the process-wide session writing to stdout"""
        if cls._default is None:
            with cls._default_lock:
                if cls._default is None:
                    cls._default = cls()
                    atexit.register(cls._default.close)
        return cls._default

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def lock(self):
        """Context manager for exclusive terminal access"""
        with self._lock:
            yield self._lock

    @property
    def stream(self) -> TextIO:
        """Output stream, stdout at the time of writing unless one was given"""
        return self._stream if self._stream is not None else sys.stdout

    @property
    def next_line_index(self) -> int:
        return self._next_line_index

    @property
    def cursor_line(self) -> int:
        return self._cursor_line

    def reserve_line(self) -> int:
        """Hand out the next row, creating it on screen if needed"""
        with self._lock:
            index = self._next_line_index
            self._next_line_index += 1
            self._write(self._ensure_rows(index + 1))
            logger.debug('Reserved terminal line %d', index)
            return index

    def move_and_clear(self, target_line: int):
        with self._lock:
            self._write(self._move_and_clear_internal(target_line))

    def write_frame(self, line_index: int, frame: str):
        with self._lock:
            self._write(self._move_and_clear_internal(line_index) + frame)

    def finish_line(self, line_index: int):
        """Leave the line as drawn and put the cursor on the row below it"""
        with self._lock:
            sequence = self._move_internal(line_index) + '\n'
            self._cursor_line = line_index + 1
            self._height = max(self._height, line_index + 2)
            self._write(sequence)

    def release_line(self, line_index: int):
        """Wipe a line whose bar is going away"""
        with self._lock:
            self._write(self._move_and_clear_internal(line_index))
            logger.debug('Released terminal line %d', line_index)

    def newline(self) -> int:
        """Reserve a blank separator row and continue on a fresh row below it"""
        with self._lock:
            index = self._next_line_index
            self._next_line_index += 1
            sequence = self._ensure_rows(index + 2) + self._move_internal(index + 1)
            self._write(sequence)
            return index

    def echo(self, text: str):
        """Print text below every reserved row, one row per line of text"""
        with self._lock:
            sequence = []
            for line in text.split('\n'):
                index = self._next_line_index
                self._next_line_index += 1
                sequence.append(self._ensure_rows(index + 1))
                sequence.append(self._move_and_clear_internal(index) + line)
            self._write(''.join(sequence))

    def close(self):
        """Park the cursor on a fresh row below all reserved rows"""
        with self._lock:
            bottom = self._next_line_index
            self._write(self._ensure_rows(bottom + 1) + self._move_internal(bottom))

    def _ensure_rows(self, count: int) -> str:
        """Emit newlines at the bottom until count rows exist"""
        sequence = []
        while self._height < count:
            sequence.append(self._move_internal(self._height - 1))
            sequence.append('\n')
            self._cursor_line = self._height
            self._height += 1
        return ''.join(sequence)

    def _move_internal(self, target_line: int) -> str:
        delta = target_line - self._cursor_line
        if delta > 0:
            sequence = Colors.CURSOR_DOWN.format(delta)
        elif delta < 0:
            sequence = Colors.CURSOR_UP.format(-delta)
        else:
            sequence = ''
        self._cursor_line = target_line
        return sequence + '\r'

    def _move_and_clear_internal(self, target_line: int) -> str:
        return self._move_internal(target_line) + Colors.CLEAR_LINE

    def _write(self, data: str):
        if not data:
            return
        self.stream.write(data)
        self.stream.flush()


def newline(session: Optional[TerminalSession] = None) -> int:
    """Separate bars or printouts with a blank row on the shared terminal"""
    return (session or TerminalSession.default()).newline()


# ============================================================================
# Progress bar
# ============================================================================

BracketCallback = Callable[[int], Tuple[str, str]]
ColorBlendCallback = Callable[[int, int, int], ColorSpec]


def _default_brackets(percent: int) -> Tuple[str, str]:
    return ('[', ']')


class PulseBar:
    """Progress bar pinned to its own terminal line"""

    renderer = FrameRenderer()

    def __init__(self,
                 total: int,
                 width: int = 50,
                 label: str = "Progress",
                 bar_color: ColorSpec = Color.BRIGHT_CYAN,
                 label_color: ColorSpec = Color.BRIGHT_WHITE,
                 animation: Union[Animation, Callable[[float, int], str], None] = None,
                 *,
                 session: Optional[TerminalSession] = None,
                 min_interval: float = 0.1,
                 min_delta: int = 1,
                 smoothing: float = 0.3,
                 clock: Callable[[], float] = time.perf_counter):
        """
        Create a progress bar and reserve its terminal line.

        Args:
            total: Value representing 100%
            width: Number of glyph columns in the bar body
            label: Text shown before the bar
            bar_color: Color of the filled columns (Color or '#RRGGBB')
            label_color: Color of the label
            animation: Glyph provider for the bar head, or a plain function
            session: Terminal session to draw on (process default if omitted)
            min_interval: Minimum seconds between throttled renders
            min_delta: Minimum progress change between throttled renders
            smoothing: EMA weight of the newest rate sample
            clock: Monotonic time source in seconds
        """
        # Validation
        if isinstance(total, bool) or not isinstance(total, int) or total <= 0:
            raise ConfigurationError("total must be a positive integer")
        if isinstance(width, bool) or not isinstance(width, int) or width <= 0:
            raise ConfigurationError("width must be a positive integer")

        self.total = total
        self.width = width
        self.label = label

        # Fail on malformed colors here rather than on the first render
        Colors.encode(bar_color)
        self.bar_color = bar_color
        self.label_color = Colors.encode(label_color)
        self.time_color = Colors.encode(Color.MAGENTA)
        self.time_format: Optional[str] = None

        self.animation = _as_animation(animation)
        self.bracket_fn: BracketCallback = _default_brackets
        self.color_fn: ColorBlendCallback = lambda column, width, percent: self.bar_color

        self.rate = RateEstimator(smoothing)
        self.gate = ThrottleGate(min_interval, min_delta)

        self.current = 0
        self._closed = False
        self._clock = clock

        self.session = session if session is not None else TerminalSession.default()
        with self.session.lock():
            self._line_index = self.session.reserve_line()
            self.start_time = clock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self):
        return f'{type(self).__name__}(label={self.label!r}, current={self.current}, total={self.total}, line={self._line_index})'

    # Property setters for configuration
    @property
    def min_interval(self) -> float:
        """Minimum seconds between throttled renders"""
        return self.gate.min_interval

    @min_interval.setter
    def min_interval(self, value: float):
        with self.session.lock():
            self.gate.min_interval = value

    @property
    def min_delta(self) -> int:
        """Minimum progress change between throttled renders"""
        return self.gate.min_delta

    @min_delta.setter
    def min_delta(self, value: int):
        with self.session.lock():
            self.gate.min_delta = value

    @property
    def smoothing(self) -> float:
        """Weight of the newest sample in the rate average"""
        return self.rate.smoothing

    @smoothing.setter
    def smoothing(self, value: float):
        with self.session.lock():
            self.rate.smoothing = value

    @property
    def line_index(self) -> int:
        return self._line_index

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def percent(self) -> int:
        return self.current * 100 // self.total

    @property
    def filled(self) -> int:
        return self.current * self.width // self.total

    def is_complete(self) -> bool:
        return self.current >= self.total

    def elapsed_time(self) -> float:
        """Seconds since the bar was created"""
        return self._clock() - self.start_time

    def remaining_time(self, elapsed: Optional[float] = None) -> float:
        """Estimated seconds left, 0 until some progress was seen"""
        if self.current <= 0:
            return 0.0
        if elapsed is None:
            elapsed = self.elapsed_time()
        return self.rate.remaining(self.total, elapsed)

    def throughput(self) -> float:
        """Average units per second since creation"""
        return self.rate.throughput(self.current, self.elapsed_time())

    def update(self, value: int, force_complete: bool = False) -> bool:
        """Set progress and redraw if the throttle allows it"""
        with self.session.lock():
            if self._closed:
                return False

            self.current = self.total if force_complete else int(min(max(value, 0), self.total))
            elapsed = self.elapsed_time()

            if not force_complete and not self.gate.allow(elapsed, self.current):
                return False

            previous = (self.rate.avg_rate, self.rate.samples)
            self.rate.observe(elapsed - self.gate.last_render_time,
                              self.current - self.gate.last_render_value)
            if not self._render_internal(elapsed):
                # a frame that was never written leaves rate and throttle untouched
                self.rate.avg_rate, self.rate.samples = previous
                return False
            self.gate.mark(elapsed, self.current)
            return True

    def complete(self) -> bool:
        """
        Draw the final frame and hand the rest of the terminal back.

        Returns False and leaves the bar open when the final frame could not
        be rendered, so complete() can be called again once fixed.
        """
        with self.session.lock():
            if self._closed:
                return True
            if not self.update(self.total, force_complete=True):
                return False
            self.session.finish_line(self._line_index)
            self._closed = True
            return True

    def close(self):
        """Remove the bar from the terminal unless it was completed"""
        with self.session.lock():
            if self._closed:
                return
            self.session.release_line(self._line_index)
            self._closed = True

    def set_label(self, label: str):
        """Change the label and redraw immediately"""
        with self.session.lock():
            self.label = label
            if not self._closed:
                self._render_internal(self.elapsed_time())

    def set_bracket_callback(self, callback: BracketCallback):
        with self.session.lock():
            self.bracket_fn = callback

    def set_color_blend_callback(self, callback: ColorBlendCallback):
        with self.session.lock():
            self.color_fn = callback

    def set_time_color(self, color: ColorSpec):
        code = Colors.encode(color)
        with self.session.lock():
            self.time_color = code

    def set_time_format(self, template: Optional[str]):
        """Use a '%S' / '%3N' template for the time text, None for whole seconds"""
        with self.session.lock():
            self.time_format = template or None

    def set_animation(self, animation: Union[Animation, Callable[[float, int], str], None]):
        with self.session.lock():
            self.animation = _as_animation(animation)

    def render(self, elapsed: Optional[float] = None) -> str:
        """Build the current frame without writing it"""
        if elapsed is None:
            elapsed = self.elapsed_time()
        return self.renderer.render(self, elapsed)

    def _render_internal(self, elapsed: float) -> bool:
        try:
            frame = self.renderer.render(self, elapsed)
        except Exception:
            logger.exception('Rendering progress failed')
            return False
        self.session.write_frame(self._line_index, frame)
        return True


# ============================================================================
# Convenience Functions
# ============================================================================

def progress(iterable: Iterable,
             total: int = 0,
             label: str = "Progress",
             **kwargs) -> Iterator:
    """
    Wrap an iterable to display progress automatically.

    Example:
        for item in progress([1, 2, 3, 4, 5], label="Processing"):
            process(item)

    Args:
        iterable: The iterable to wrap
        total: Total items (auto-detected if possible)
        label: Progress bar label
        **kwargs: Additional arguments for PulseBar
    """
    if not total:
        try:
            total = len(iterable)
        except TypeError:
            raise ConfigurationError("total is required for iterables without len()") from None

    if total == 0:
        return

    with PulseBar(total, label=label, **kwargs) as bar:
        for index, item in enumerate(iterable, 1):
            yield item
            bar.update(index)
        bar.complete()
