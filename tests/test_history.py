from patchpair.history import HistoryState, StrokeHistory

RED = '#ef4444'
BLUE = '#3b82f6'


def add(h, color, start=(0, 0), end=(10, 10), width=5):
    h.begin_stroke(color, width, start)
    h.extend_stroke(end)
    return h.commit_stroke()


def test_commit_appends_and_moves_cursor():
    h = StrokeHistory()
    s = add(h, RED)
    assert s is not None and s.color == RED
    assert s.path == ((0.0, 0.0), (10.0, 10.0))
    assert len(h) == 1 and h.idx == 0
    assert h.state() == HistoryState(True, False)


def test_click_without_drag_is_discarded():
    h = StrokeHistory()
    h.begin_stroke(RED, 5, (1, 1))
    assert h.commit_stroke() is None
    assert len(h) == 0 and h.idx == -1
    assert not h.in_progress


def test_extend_without_stroke_is_noop():
    h = StrokeHistory()
    h.extend_stroke((3, 3))
    assert h.commit_stroke() is None
    assert len(h) == 0


def test_undo_then_redo_restores_active_set():
    h = StrokeHistory()
    for i in range(4):
        add(h, RED if i % 2 else BLUE, end=(i + 1, i + 1))
    before = h.active_strokes()
    assert h.undo()
    assert h.active_strokes() == before[:-1]
    assert h.redo()
    assert h.active_strokes() == before


def test_undo_and_redo_stop_at_bounds():
    h = StrokeHistory()
    add(h, RED)
    assert h.undo()
    assert not h.undo()
    assert h.idx == -1
    assert h.redo()
    assert not h.redo()
    assert h.idx == 0


def test_new_stroke_prunes_redo_branch():
    h = StrokeHistory()
    add(h, RED)
    add(h, RED)
    add(h, BLUE)
    h.undo()
    h.undo()
    add(h, BLUE, end=(50, 50))
    assert len(h) == 2
    assert not h.can_redo
    assert not h.redo()
    assert [s.color for s in h.active_strokes()] == [RED, BLUE]


def test_clear_resets_everything():
    h = StrokeHistory()
    add(h, RED)
    h.begin_stroke(BLUE, 5, (0, 0))
    h.clear()
    assert len(h) == 0 and h.idx == -1
    assert not h.in_progress
    assert h.state() == HistoryState(False, False)


def test_delete_color_removes_all_and_clamps_cursor():
    h = StrokeHistory()
    add(h, RED)
    add(h, BLUE)
    add(h, RED)
    assert h.idx == 2
    assert h.delete_color(RED) == 2
    assert len(h) == 1 and h.idx == 0
    assert [s.color for s in h.strokes] == [BLUE]
    assert not h.redo()
    assert RED not in h.active_colors()


def test_delete_color_also_removes_inactive_strokes():
    h = StrokeHistory()
    add(h, BLUE)
    add(h, RED)
    h.undo()
    h.delete_color(RED)
    assert len(h) == 1 and h.idx == 0
    assert not h.can_redo


def test_active_colors_in_first_appearance_order():
    h = StrokeHistory()
    add(h, BLUE)
    add(h, RED)
    add(h, BLUE)
    assert h.active_colors() == [BLUE, RED]
    h.undo()
    h.undo()
    assert h.active_colors() == [BLUE]


def test_listeners_see_state_after_each_mutation():
    h = StrokeHistory()
    seen = []
    h.subscribe(seen.append)
    add(h, RED)
    h.undo()
    h.redo()
    h.delete_color(RED)
    h.clear()
    assert seen == [
        HistoryState(True, False),
        HistoryState(False, True),
        HistoryState(True, False),
        HistoryState(False, False),
        HistoryState(False, False),
    ]


def test_unsubscribed_listener_is_not_called():
    h = StrokeHistory()
    seen = []
    cb = h.subscribe(seen.append)
    h.unsubscribe(cb)
    add(h, RED)
    assert seen == []
