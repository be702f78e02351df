import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture
def qapp():
    """Shared Qt application for signal/timer based tests."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv)
    yield app


@pytest.fixture
def scheduler():
    from keytrack.core.scheduler import ManualScheduler

    return ManualScheduler()


@pytest.fixture
def track_store():
    """Linear ``hip`` with three keys, flat ``knee`` limited to [-1, 1]."""
    from keytrack.core.frame_store import InMemoryFrameStore

    return InMemoryFrameStore(
        {"hip": [float(index) for index in range(100)], "knee": [0.0] * 100},
        keyframes={"hip": [10, 20, 30], "knee": [40, 60]},
        limits={"knee": (-1.0, 1.0)},
    )


@pytest.fixture
def editor(qapp, tmp_path, scheduler, track_store):
    from unittest.mock import MagicMock

    from keytrack.core.editor import TrackEditor
    from keytrack.core.settings_controller import EditorSettings

    settings = EditorSettings(path=str(tmp_path / "settings.ini"))
    track_editor = TrackEditor(
        track_store, settings=settings, scheduler=scheduler, render=MagicMock()
    )
    track_editor.load_field("hip")
    return track_editor
