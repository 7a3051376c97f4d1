import io

import pytest

from progressline.draw_target import DrawStateWrapper, ProgressDrawTarget, StreamTerm
from progressline.lines import MAX_BURST, DrawState, Line, LineAdjust


class FakeTerm:
    def __init__(self, width=80, height=24):
        self._width = width
        self._height = height
        self.ops = []

    def width(self):
        return self._width

    def height(self):
        return self._height

    def move_cursor_up(self, n):
        self.ops.append(("up", n))

    def move_cursor_down(self, n):
        self.ops.append(("down", n))

    def clear_line(self):
        self.ops.append(("clear", None))

    def write_str(self, s):
        self.ops.append(("str", s))

    def write_line(self, s):
        self.ops.append(("line", s))

    def flush(self):
        self.ops.append(("flush", None))

    def count(self, op):
        return sum(1 for name, _ in self.ops if name == op)


class FakeMultiState:
    def __init__(self, hidden=False, width=50):
        self.hidden = hidden
        self._width = width
        self.zombies = []
        self.draws = []
        self.states = []

    def is_hidden(self):
        return self.hidden

    def width(self):
        return self._width

    def mark_zombie(self, idx):
        self.zombies.append(idx)

    def draw_state(self, idx):
        self.states.append(idx)
        return DrawStateWrapper(DrawState(lines=[Line.bar_line("x")]), [])

    def draw(self, force_draw, extra_lines, now):
        self.draws.append((force_draw, extra_lines, now))


def draw_lines(target, lines, force=True):
    drawable = target.drawable(force, 0.0)
    with drawable.state() as state:
        state.lines.extend(lines)
    drawable.draw()


def test_hidden_target():
    target = ProgressDrawTarget.hidden()
    assert target.is_hidden() is True
    assert target.width() is None
    assert target.drawable(True, 0.0) is None
    assert target.remote() is None


def test_non_tty_stream_is_hidden():
    target = ProgressDrawTarget.term(StreamTerm(io.StringIO()), 20)
    assert target.is_hidden() is True
    assert target.drawable(True) is None


def test_zero_refresh_rate_rejected():
    with pytest.raises(ValueError):
        ProgressDrawTarget.term(StreamTerm(io.StringIO()), 0)


def test_stream_term_buffers_until_flush():
    stream = io.StringIO()
    term = StreamTerm(stream)
    term.write_line("abc")
    term.move_cursor_up(0)
    assert stream.getvalue() == ""
    term.flush()
    assert stream.getvalue() == "abc\n"


def test_stream_term_cursor_escape():
    stream = io.StringIO()
    term = StreamTerm(stream)
    term.move_cursor_up(2)
    term.flush()
    assert stream.getvalue() == "\x1b[2A"


def test_term_like_draws_lines():
    fake = FakeTerm(width=10)
    target = ProgressDrawTarget.term_like(fake)
    assert target.is_hidden() is False
    assert target.width() == 10
    assert target.is_stderr() is False
    draw_lines(target, [Line.bar_line("abc")])
    written = "".join(s for name, s in fake.ops if name == "str")
    assert written.startswith("abc")
    assert len(written) == 10


def test_second_draw_clears_previous_lines():
    fake = FakeTerm()
    target = ProgressDrawTarget.term_like(fake)
    draw_lines(target, [Line.bar_line("a"), Line.bar_line("b")])
    assert fake.count("clear") == 0
    draw_lines(target, [Line.bar_line("c")])
    assert fake.count("clear") == 2


def test_adjust_keep_and_clear():
    fake = FakeTerm()
    target = ProgressDrawTarget.term_like(fake)
    draw_lines(target, [Line.bar_line("a"), Line.bar_line("b")])
    target.adjust_last_line_count(LineAdjust.keep(2))
    draw_lines(target, [Line.bar_line("c")])
    assert fake.count("clear") == 0
    target.adjust_last_line_count(LineAdjust.clear(2))
    draw_lines(target, [Line.bar_line("d")])
    assert fake.count("clear") == 3


def test_move_cursor_skips_clearing():
    fake = FakeTerm()
    target = ProgressDrawTarget.term_like(fake)
    target.set_move_cursor(True)
    draw_lines(target, [Line.bar_line("a")])
    draw_lines(target, [Line.bar_line("b")])
    assert fake.count("clear") == 0
    assert ("str", "\r") in fake.ops


def test_drawable_clear_erases_output():
    fake = FakeTerm()
    target = ProgressDrawTarget.term_like(fake)
    draw_lines(target, [Line.bar_line("a")])
    target.drawable(True, 0.0).clear()
    assert fake.count("clear") == 1


def test_rate_limited_term_like():
    fake = FakeTerm()
    target = ProgressDrawTarget.term_like_with_hz(fake, 1)
    import time

    now = time.monotonic()
    allowed = sum(1 for _ in range(MAX_BURST + 5) if target.drawable(False, now) is not None)
    assert allowed == MAX_BURST
    assert target.drawable(True, now) is not None


def test_drawable_width_matches_target():
    fake = FakeTerm(width=33)
    target = ProgressDrawTarget.term_like(fake)
    assert target.drawable(True, 0.0).width() == target.width()


def test_wrapper_moves_text_to_orphans():
    orphans = []
    state = DrawState()
    with DrawStateWrapper(state, orphans) as wrapper:
        wrapper.lines.extend([Line.text_line("log"), Line.empty(), Line.bar_line("bar")])
    assert state.lines == [Line.bar_line("bar")]
    assert orphans == [Line.text_line("log"), Line.empty()]


def test_wrapper_without_orphans_keeps_all():
    state = DrawState()
    with DrawStateWrapper(state) as wrapper:
        wrapper.lines.append(Line.text_line("log"))
    assert state.lines == [Line.text_line("log")]


def test_remote_target_delegates():
    multi = FakeMultiState(hidden=True, width=42)
    target = ProgressDrawTarget.new_remote(multi, 3)
    assert target.remote() == (multi, 3)
    assert target.is_hidden() is True
    assert target.width() == 42
    target.mark_zombie()
    assert multi.zombies == [3]


def test_remote_disconnect_clears_and_draws():
    multi = FakeMultiState()
    target = ProgressDrawTarget.new_remote(multi, 1)
    target.disconnect(5.0)
    assert multi.states == [1]
    assert multi.draws == [(True, None, 5.0)]


def test_remote_drawable_state_is_reset():
    multi = FakeMultiState()
    target = ProgressDrawTarget.new_remote(multi, 0)
    drawable = target.drawable(False, 1.0)
    wrapper = drawable.state()
    assert wrapper.lines == []


def test_stderr_target_reports_stderr():
    assert ProgressDrawTarget.stderr().is_stderr() is True
    assert ProgressDrawTarget.stdout().is_stderr() is False