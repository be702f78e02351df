import pytest

from keytrack.core.view_state import ViewStateCache
from keytrack.core.viewport import WindowController
from keytrack.core.y_axis import YAxisController


@pytest.mark.usefixtures("qapp")
def test_save_and_restore_per_field():
    cache = ViewStateCache()
    window = WindowController(300)
    y_axis = YAxisController()
    window.set_window(40, 60)
    y_axis.fit([0.0, 2.0])
    y_axis.pan(1.0)

    cache.save("hip", window, y_axis)
    saved = y_axis.state
    window.reset()
    y_axis.reset()

    assert "hip" in cache
    assert cache.restore("hip", window, y_axis) is True
    assert (window.start, window.size) == (40, 60)
    assert y_axis.state == saved
    assert y_axis.user_override


@pytest.mark.usefixtures("qapp")
def test_unknown_field_is_not_restored():
    cache = ViewStateCache()
    window = WindowController(100)
    y_axis = YAxisController()

    cache.save(None, window, y_axis)

    assert len(cache) == 0
    assert cache.restore("knee", window, y_axis) is False
    cache.save("knee", window, y_axis)
    cache.forget("knee")
    assert cache.get("knee") is None
