import pytest

from pulse_bar import (
    ConfigurationError,
    FrameAnimation,
    PulseAnimation,
    SolidAnimation,
    SpinnerAnimation,
)
from pulse_bar import _as_animation


def test_pulse_cycles_every_tenth_of_a_second():
    animation = PulseAnimation()
    assert animation.frame(0.0, 0) == '▁'
    assert animation.frame(0.05, 0) == '▁'
    assert animation.frame(0.15, 0) == '▂'
    assert animation.frame(0.75, 0) == '█'
    assert animation.frame(1.35, 0) == '▂'
    # wraps after 14 frames
    assert animation.frame(1.45, 0) == '▁'


def test_pulse_ignores_percent_and_call_order():
    animation = PulseAnimation()
    later = animation.frame(0.3, 90)
    earlier = animation.frame(0.1, 10)
    assert animation.frame(0.3, 0) == later
    assert animation.frame(0.1, 99) == earlier


def test_frame_animation_uses_fps():
    animation = FrameAnimation(['a', 'b', 'c'], fps=2)
    assert [animation.frame(t, 0) for t in (0.0, 0.5, 1.0, 1.5)] == ['a', 'b', 'c', 'a']


def test_frame_animation_validates_configuration():
    with pytest.raises(ConfigurationError):
        FrameAnimation([])
    with pytest.raises(ConfigurationError):
        FrameAnimation(['a'], fps=0)


def test_spinner_styles():
    assert SpinnerAnimation('spinner').frame(0.1, 0) == '/'
    assert SpinnerAnimation('dots').frame(0.0, 0) == '⣷'
    with pytest.raises(ConfigurationError):
        SpinnerAnimation('wobble')


def test_solid_animation_is_static():
    animation = SolidAnimation()
    assert {animation.frame(t / 10, p) for t in range(30) for p in (0, 50, 100)} == {'█'}


def test_plain_functions_are_wrapped():
    animation = _as_animation(lambda elapsed, percent: 'ROYGBIV'[(int(elapsed * 2) + percent // 20) % 7])
    assert animation.frame(0.0, 0) == 'R'
    assert animation.frame(0.0, 40) == 'Y'


def test_default_animation_is_pulse():
    assert isinstance(_as_animation(None), PulseAnimation)


def test_non_animation_is_rejected():
    with pytest.raises(ConfigurationError):
        _as_animation(42)


def test_animation_class_instead_of_instance_is_rejected():
    with pytest.raises(ConfigurationError):
        _as_animation(PulseAnimation)
