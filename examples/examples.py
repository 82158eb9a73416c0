"""Examples demonstrating pulse bars, custom animations and shared terminal lines"""

import random
import threading
import time

from pulse_bar import (
    progress,
    newline,
    Color,
    Colors,
    PulseBar,
    SolidAnimation,
    TerminalSession,
)


class RainbowAnimation:
    """Animation mixing elapsed time and percent into the frame index"""
    FRAMES = ['🌈', 'ROYGBIV', '🌟', '✨', '⚡']

    def frame(self, elapsed, percent):
        return self.FRAMES[int(elapsed * 2 + percent / 20.0) % len(self.FRAMES)]


def example_basic(session):
    bar = PulseBar(100, label="Downloading", session=session)
    bar.set_animation(SolidAnimation())
    for i in range(0, 101, 2):
        bar.update(i)
        time.sleep(0.05)
    bar.complete()
    newline(session)


def example_custom_style(session):
    bar = PulseBar(100, 50, "Processing",
                   bar_color=Color.BRIGHT_YELLOW,
                   label_color=Color.BRIGHT_WHITE,
                   animation=RainbowAnimation(),
                   session=session)

    # Half blue, half red
    bar.set_color_blend_callback(
        lambda column, width, percent: Color.BRIGHT_BLUE if column < width // 2 else Color.BRIGHT_RED)

    def brackets(percent):
        if percent < 30:
            return ('<<', '>>')
        if percent < 70:
            return ('{', '}')
        return ('⟪', '⟫')

    bar.set_bracket_callback(brackets)

    for i in range(101):
        bar.update(i)
        time.sleep(0.03)
    bar.complete()
    newline(session)


def example_gradient(session):
    bar = PulseBar(100, 40, "Gradient", session=session)
    bar.set_color_blend_callback(Colors.gradient_blend('#FF6400', '#32FF32'))
    for i in range(101):
        bar.update(i)
        time.sleep(0.02)
    bar.complete()
    newline(session)


def example_nested(session):
    num_items = 5
    main_bar = PulseBar(num_items, 30, "Overall", session=session)
    for item in range(1, num_items + 1):
        with PulseBar(100, 40, f"Item {item}", session=session) as bar:
            value = 0
            while value < 100:
                value += random.randint(1, 5)
                bar.update(value)
                time.sleep(0.02)
            bar.complete()
        main_bar.update(item)
    main_bar.complete()
    newline(session)


def example_multithreaded(session):
    def worker(worker_id, total_work):
        bar = PulseBar(total_work, 40, f"Worker {worker_id}",
                       bar_color=Color.BRIGHT_BLUE,
                       session=session)
        for i in range(total_work + 1):
            bar.update(i)
            time.sleep(random.uniform(0.01, 0.05))
        bar.complete()

    workers = [threading.Thread(target=worker, args=(i + 1, 100)) for i in range(4)]
    for thread in workers:
        thread.start()
    for thread in workers:
        thread.join()
    newline(session)


def example_set_label(session):
    bar = PulseBar(100, 50, "Initializing", session=session)
    for i in range(101):
        if i == 20:
            bar.set_label("Loading config")
        elif i == 60:
            bar.set_label("Processing data")
        bar.update(i)
        time.sleep(0.02)
    bar.complete()
    newline(session)


def example_milliseconds_time(session):
    bar = PulseBar(100, 50, "Precise timing", session=session)
    bar.set_time_format("%S.%3N")
    bar.set_time_color(Color.BRIGHT_YELLOW)
    for i in range(101):
        bar.update(i)
        time.sleep(0.02)
    bar.complete()
    newline(session)


def example_wrapper(session):
    for _ in progress(range(80), label="Wrapped", session=session):
        time.sleep(0.02)
    newline(session)


if __name__ == '__main__':
    examples = [
        ("Basic usage", example_basic),
        ("Custom style", example_custom_style),
        ("Gradient colors", example_gradient),
        ("Nested bars", example_nested),
        ("Multiple threads", example_multithreaded),
        ("Dynamic label", example_set_label),
        ("Millisecond time format", example_milliseconds_time),
        ("Iterable wrapper", example_wrapper),
    ]

    with TerminalSession() as session:
        for index, (title, example) in enumerate(examples, 1):
            session.echo(f"=== Example {index}: {title} ===")
            example(session)
        session.echo("All examples finished!")
