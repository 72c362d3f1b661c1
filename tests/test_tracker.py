import threading

from skipmedia import SkipRange
from skipmedia.tracker import SkipMarker, SkipStateTracker


def test_marker_lifecycle(log_output):
    tracker = SkipStateTracker(log_output)
    marker = SkipMarker("/movies/foo.edl", SkipRange(60, 180))
    assert not tracker.already_skipped("s1", marker)
    assert not tracker.is_tracked("s1")

    tracker.mark_skipped("s1", marker)
    assert tracker.already_skipped("s1", marker)
    assert not tracker.already_skipped("s1", SkipMarker("/movies/foo.edl", SkipRange(300, 330)))
    assert not tracker.already_skipped("s1", SkipMarker("/movies/bar.edl", SkipRange(60, 180)))
    assert not tracker.already_skipped("s2", marker)

    tracker.left_range("s1")
    assert tracker.is_tracked("s1")
    assert not tracker.already_skipped("s1", marker)


def test_forget(log_output):
    tracker = SkipStateTracker(log_output)
    tracker.mark_skipped("s1", SkipMarker("a.edl", SkipRange(1, 2)))
    assert tracker.forget("s1") is True
    assert tracker.forget("s1") is False
    assert tracker.forget("never-seen") is False
    assert log_output.getvalue().count("cleared skip state") == 1


def test_left_range_does_not_start_tracking(log_output):
    tracker = SkipStateTracker(log_output)
    tracker.left_range("s1")
    assert tracker.tracked_sessions() == []


def test_concurrent_mark_and_forget(log_output):
    tracker = SkipStateTracker(log_output)
    marker = SkipMarker("a.edl", SkipRange(1, 2))

    def marker_thread():
        for i in range(2000): tracker.mark_skipped(f"s{i % 50}", marker)

    def forget_thread():
        for i in range(2000): tracker.forget(f"s{i % 50}")

    threads = [threading.Thread(target=marker_thread), threading.Thread(target=forget_thread)]
    for t in threads: t.start()
    for t in threads: t.join()
    for session_id in tracker.tracked_sessions(): assert tracker.already_skipped(session_id, marker)
