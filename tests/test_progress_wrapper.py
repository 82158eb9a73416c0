import pytest

from pulse_bar import ConfigurationError, progress


def test_progress_wrapper_yields_items(session, stream):
    items = list(range(5))
    seen = []
    for item in progress(items, label="Test", session=session, min_interval=0):
        seen.append(item)
    assert seen == items
    assert '100%' in stream.getvalue()


def test_progress_wrapper_with_explicit_total(session, stream):
    seen = list(progress(iter('abc'), total=3, label="Letters", session=session))
    assert seen == ['a', 'b', 'c']
    assert 'Letters' in stream.getvalue()


def test_progress_wrapper_requires_total_for_unsized(session):
    with pytest.raises(ConfigurationError):
        list(progress(iter([1, 2]), session=session))


def test_progress_wrapper_empty_iterable(session, stream):
    assert list(progress([], session=session)) == []
    assert session.next_line_index == 0


def test_progress_wrapper_clears_line_when_abandoned(session, stream, terminal):
    for item in progress(range(10), label="Partial", session=session, min_interval=0):
        if item == 3:
            break
    terminal.feed(stream.getvalue())
    assert terminal.lines()[0] == ''
