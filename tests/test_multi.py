import pytest

from progressline.draw_target import ProgressDrawTarget
from progressline.lines import MultiProgressAlignment
from progressline.multi import MultiProgress


class FakeBar:
    def __init__(self, length):
        self.length = length
        self.draw_target = ProgressDrawTarget.hidden()

    def set_draw_target(self, target):
        self.draw_target = target

    def index(self):
        remote = self.draw_target.remote()
        return None if remote is None else remote[1]


class RecordingTerm:
    def __init__(self):
        self.output = []

    def width(self):
        return 80

    def height(self):
        return 24

    def move_cursor_up(self, n):
        pass

    def move_cursor_down(self, n):
        pass

    def clear_line(self):
        self.output.append("<clear>")

    def write_str(self, s):
        self.output.append(s)

    def write_line(self, s):
        self.output.append(s + "\n")

    def flush(self):
        pass


def test_multi_is_hidden():
    mp = MultiProgress(ProgressDrawTarget.hidden())
    pb = mp.add(FakeBar(100))
    assert mp.is_hidden()
    assert pb.draw_target.is_hidden()


def test_late_pb_drop():
    pb = FakeBar(10)
    mp = MultiProgress()
    added = mp.add(pb)
    assert added is pb
    assert pb.index() == 0


def test_multi_progress_hidden():
    mp = MultiProgress(ProgressDrawTarget.hidden())
    pb = mp.add(FakeBar(123))
    assert pb.index() == 0
    assert len(mp.state) == 1


def test_multi_progress_modifications():
    mp = MultiProgress()
    p0 = mp.add(FakeBar(1))
    p1 = mp.add(FakeBar(1))
    p2 = mp.add(FakeBar(1))
    p3 = mp.add(FakeBar(1))
    mp.remove(p2)
    mp.remove(p1)
    p4 = mp.insert(1, FakeBar(1))

    state = mp.state
    assert len(state.members) == 4
    assert len(state) == 3
    assert state.free_set[-1] == 2
    assert state.ordering == [0, 1, 3]
    assert state.members[2].draw_state is None
    assert p4.index() == 1
    assert p0.index() == 0
    assert p1.index() is None
    assert p2.index() is None
    assert p3.index() == 3


def test_multi_progress_insert_from_back():
    mp = MultiProgress()
    p0 = mp.add(FakeBar(1))
    p1 = mp.add(FakeBar(1))
    p2 = mp.add(FakeBar(1))
    p3 = mp.insert_from_back(1, FakeBar(1))
    p4 = mp.insert_from_back(10, FakeBar(1))

    assert mp.state.ordering == [4, 0, 1, 3, 2]
    assert [p.index() for p in (p0, p1, p2, p3, p4)] == [0, 1, 2, 3, 4]


def test_multi_progress_insert_after():
    mp = MultiProgress()
    p0 = mp.add(FakeBar(1))
    p1 = mp.add(FakeBar(1))
    p2 = mp.add(FakeBar(1))
    p3 = mp.insert_after(p2, FakeBar(1))
    p4 = mp.insert_after(p0, FakeBar(1))

    assert mp.state.ordering == [0, 4, 1, 2, 3]
    assert [p.index() for p in (p0, p1, p2, p3, p4)] == [0, 1, 2, 3, 4]


def test_multi_progress_insert_before():
    mp = MultiProgress()
    p0 = mp.add(FakeBar(1))
    p1 = mp.add(FakeBar(1))
    p2 = mp.add(FakeBar(1))
    p3 = mp.insert_before(p0, FakeBar(1))
    p4 = mp.insert_before(p2, FakeBar(1))

    assert mp.state.ordering == [3, 0, 1, 4, 2]
    assert [p.index() for p in (p0, p1, p2, p3, p4)] == [0, 1, 2, 3, 4]


def test_multi_progress_insert_before_and_after():
    mp = MultiProgress()
    p0 = mp.add(FakeBar(1))
    p1 = mp.add(FakeBar(1))
    p2 = mp.add(FakeBar(1))
    p3 = mp.insert_before(p0, FakeBar(1))
    p4 = mp.insert_after(p3, FakeBar(1))
    p5 = mp.insert_after(p3, FakeBar(1))
    p6 = mp.insert_before(p1, FakeBar(1))

    assert mp.state.ordering == [3, 5, 4, 0, 6, 1, 2]
    bars = (p0, p1, p2, p3, p4, p5, p6)
    assert [p.index() for p in bars] == [0, 1, 2, 3, 4, 5, 6]


def test_multi_progress_multiple_remove():
    mp = MultiProgress()
    p0 = mp.add(FakeBar(1))
    p1 = mp.add(FakeBar(1))
    mp.remove(p0)
    mp.remove(p0)
    mp.remove(p0)

    state = mp.state
    assert len(state.members) == 2
    assert len(state.free_set) == 1
    assert len(state) == 1
    assert state.members[0].draw_state is None
    assert state.free_set[-1] == 0
    assert state.ordering == [1]
    assert p0.index() is None
    assert p1.index() == 1


def test_mp_no_crash_double_add():
    mp = MultiProgress()
    pb = mp.add(FakeBar(10))
    again = mp.add(pb)
    assert again is pb
    assert pb.index() == 1


def test_insert_before_non_member_raises():
    mp = MultiProgress()
    with pytest.raises(ValueError):
        mp.insert_before(FakeBar(1), FakeBar(1))


def test_remove_from_other_group_raises():
    mp1 = MultiProgress()
    mp2 = MultiProgress()
    pb = mp1.add(FakeBar(1))
    with pytest.raises(ValueError):
        mp2.remove(pb)


def test_remove_non_member_is_noop():
    mp = MultiProgress()
    mp.add(FakeBar(1))
    mp.remove(FakeBar(1))
    assert mp.state.ordering == [0]


def test_set_alignment():
    mp = MultiProgress(ProgressDrawTarget.hidden())
    mp.set_alignment(MultiProgressAlignment.BOTTOM)
    assert mp.state.alignment is MultiProgressAlignment.BOTTOM


def test_println_writes_to_term_like():
    term = RecordingTerm()
    mp = MultiProgress(ProgressDrawTarget.term_like(term))
    mp.println("hello")
    assert "hello" in term.output


def test_suspend_returns_result_of_callable():
    calls = []
    mp = MultiProgress(ProgressDrawTarget.term_like(RecordingTerm()))
    result = mp.suspend(lambda: calls.append(1) or 42)
    assert result == 42
    assert calls == [1]


def test_set_draw_target_replaces_target():
    mp = MultiProgress(ProgressDrawTarget.hidden())
    assert mp.is_hidden()
    mp.set_draw_target(ProgressDrawTarget.term_like(RecordingTerm()))
    assert not mp.is_hidden()