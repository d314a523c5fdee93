import pytest

from reactorhttp.timewheel import TimeWheel


def _recorder():
    calls = []
    return calls, lambda: calls.append(1)


def test_task_fires_after_delay():
    wheel = TimeWheel(16)
    calls, cb = _recorder()
    wheel.add(("conn", 1), 3, cb)
    wheel.tick()
    wheel.tick()
    assert calls == []
    assert ("conn", 1) in wheel
    wheel.tick()
    assert calls == [1]
    assert ("conn", 1) not in wheel
    assert len(wheel) == 0


def test_refresh_postpones():
    wheel = TimeWheel(16)
    calls, cb = _recorder()
    wheel.add("t", 3, cb)
    wheel.tick()
    wheel.tick()
    wheel.refresh("t")
    wheel.tick()
    assert calls == []
    wheel.tick()
    assert calls == []
    wheel.tick()
    assert calls == [1]
    assert "t" not in wheel


def test_cancel_prevents_run_but_entry_expires():
    wheel = TimeWheel(16)
    calls, cb = _recorder()
    wheel.add("t", 2, cb)
    wheel.cancel("t")
    assert "t" in wheel
    wheel.tick()
    wheel.tick()
    assert calls == []
    assert "t" not in wheel


def test_duplicate_add_rejected():
    wheel = TimeWheel(16)
    wheel.add("t", 2, lambda: None)
    with pytest.raises(ValueError):
        wheel.add("t", 5, lambda: None)
    assert len(wheel) == 1


def test_negative_delay_rejected():
    wheel = TimeWheel(16)
    with pytest.raises(ValueError):
        wheel.add("t", -1, lambda: None)
    assert "t" not in wheel


def test_unknown_refresh_and_cancel_are_ignored():
    wheel = TimeWheel(8)
    wheel.refresh("missing")
    wheel.cancel("missing")
    assert len(wheel) == 0


def test_delay_equal_to_capacity_wraps():
    wheel = TimeWheel(4)
    calls, cb = _recorder()
    wheel.add("t", 4, cb)
    for _ in range(3):
        wheel.tick()
    assert calls == []
    assert "t" in wheel
    assert len(wheel) == 1
    wheel.tick()
    assert calls == [1]
    assert "t" not in wheel
    assert len(wheel) == 0


def test_tasks_in_one_slot_fire_in_order():
    wheel = TimeWheel(8)
    order = []
    wheel.add("a", 1, lambda: order.append("a"))
    wheel.add("b", 1, lambda: order.append("b"))
    wheel.tick()
    assert order == ["a", "b"]


def test_id_reusable_after_expiry():
    wheel = TimeWheel(8)
    calls, cb = _recorder()
    wheel.add("t", 1, cb)
    wheel.tick()
    assert "t" not in wheel
    wheel.add("t", 1, cb)
    assert "t" in wheel
    assert len(wheel) == 1
    wheel.tick()
    assert calls == [1, 1]
    assert len(wheel) == 0


def test_invalid_capacity():
    with pytest.raises(ValueError):
        TimeWheel(0)