import configparser
import logging
import os

from PySide6.QtCore import QObject, Signal

from keytrack.core.ripple import SpreadMode


logger = logging.getLogger(__name__)


class EditorSettings(QObject):
    """Manages track editor settings persistence."""

    settings_changed = Signal()

    DEFAULT_TIMELINE_SETTINGS = {
        "min_display_frames": 30,
        "max_display_frames": 2000,
    }

    DEFAULT_Y_AXIS_SETTINGS = {
        "min_half_range": 1e-4,
    }

    DEFAULT_INTERACTION_SETTINGS = {
        "drag_threshold_px": 5.0,
        "handle_drag_delay_ms": 16,
        "ripple_apply_delay_ms": 30,
        "recompute_delay_ms": 120,
        "click_guard_ms": 150,
        "commit_delay_ms": 50,
    }

    DEFAULT_RIPPLE_SETTINGS = {
        "before_mode": SpreadMode.DECAY,
        "before_radius": 10,
        "after_mode": SpreadMode.DECAY,
        "after_radius": 10,
    }

    def __init__(self, path: str = 'settings.ini'):
        super().__init__()
        self.path = path
        self.config = configparser.ConfigParser()
        self.config.read(path)

        if not self.config.has_section('Timeline'):
            self.config.add_section('Timeline')
        self.min_display_frames = self._get_int(
            'Timeline', 'min_display_frames', self.DEFAULT_TIMELINE_SETTINGS["min_display_frames"]
        )
        self.max_display_frames = self._get_int(
            'Timeline', 'max_display_frames', self.DEFAULT_TIMELINE_SETTINGS["max_display_frames"]
        )
        if self.max_display_frames < self.min_display_frames:
            self.max_display_frames = self.min_display_frames
        self._sync_timeline_settings_to_config()

        if not self.config.has_section('YAxis'):
            self.config.add_section('YAxis')
        self.min_half_range = self._get_positive_float(
            'YAxis', 'min_half_range', self.DEFAULT_Y_AXIS_SETTINGS["min_half_range"]
        )
        self._sync_y_axis_settings_to_config()

        if not self.config.has_section('Interaction'):
            self.config.add_section('Interaction')
        defaults = self.DEFAULT_INTERACTION_SETTINGS
        self.drag_threshold_px = self._get_positive_float(
            'Interaction', 'drag_threshold_px', defaults["drag_threshold_px"]
        )
        self.handle_drag_delay_ms = self._get_delay('handle_drag_delay_ms')
        self.ripple_apply_delay_ms = self._get_delay('ripple_apply_delay_ms')
        self.recompute_delay_ms = self._get_delay('recompute_delay_ms')
        self.click_guard_ms = self._get_delay('click_guard_ms')
        self.commit_delay_ms = self._get_delay('commit_delay_ms')
        self._sync_interaction_settings_to_config()

        if not self.config.has_section('Ripple'):
            self.config.add_section('Ripple')
        self.ripple_before_mode = self._get_mode(
            'before_mode', self.DEFAULT_RIPPLE_SETTINGS["before_mode"]
        )
        self.ripple_after_mode = self._get_mode(
            'after_mode', self.DEFAULT_RIPPLE_SETTINGS["after_mode"]
        )
        self.ripple_before_radius = self._get_int(
            'Ripple', 'before_radius', self.DEFAULT_RIPPLE_SETTINGS["before_radius"]
        )
        self.ripple_after_radius = self._get_int(
            'Ripple', 'after_radius', self.DEFAULT_RIPPLE_SETTINGS["after_radius"]
        )
        self._sync_ripple_settings_to_config()

    def save_settings(self) -> bool:
        """Persist settings to disk."""
        try:
            self._sync_timeline_settings_to_config()
            self._sync_y_axis_settings_to_config()
            self._sync_interaction_settings_to_config()
            self._sync_ripple_settings_to_config()

            with open(self.path, 'w') as configfile:
                self.config.write(configfile)
        except OSError:
            logger.exception("Could not write settings to %s", os.path.abspath(self.path))
            return False
        return True

    def _get_int(self, section, option, fallback):
        try:
            return max(1, self.config.getint(section, option))
        except (configparser.NoOptionError, ValueError):
            return fallback

    def _get_positive_float(self, section, option, fallback):
        try:
            value = self.config.getfloat(section, option)
        except (configparser.NoOptionError, ValueError):
            return fallback
        if not value > 0:
            return fallback
        return value

    def _get_delay(self, option):
        fallback = self.DEFAULT_INTERACTION_SETTINGS[option]
        try:
            return max(0, self.config.getint('Interaction', option))
        except (configparser.NoOptionError, ValueError):
            return fallback

    def _get_mode(self, option, fallback):
        raw_value = self.config.get('Ripple', option, fallback=fallback.value)
        try:
            return SpreadMode(raw_value)
        except ValueError:
            return fallback

    def _sync_timeline_settings_to_config(self):
        self.config.set('Timeline', 'min_display_frames', str(int(self.min_display_frames)))
        self.config.set('Timeline', 'max_display_frames', str(int(self.max_display_frames)))

    def _sync_y_axis_settings_to_config(self):
        self.config.set('YAxis', 'min_half_range', repr(float(self.min_half_range)))

    def _sync_interaction_settings_to_config(self):
        self.config.set('Interaction', 'drag_threshold_px', f"{self.drag_threshold_px:g}")
        self.config.set('Interaction', 'handle_drag_delay_ms', str(int(self.handle_drag_delay_ms)))
        self.config.set('Interaction', 'ripple_apply_delay_ms', str(int(self.ripple_apply_delay_ms)))
        self.config.set('Interaction', 'recompute_delay_ms', str(int(self.recompute_delay_ms)))
        self.config.set('Interaction', 'click_guard_ms', str(int(self.click_guard_ms)))
        self.config.set('Interaction', 'commit_delay_ms', str(int(self.commit_delay_ms)))

    def _sync_ripple_settings_to_config(self):
        self.config.set('Ripple', 'before_mode', self.ripple_before_mode.value)
        self.config.set('Ripple', 'after_mode', self.ripple_after_mode.value)
        self.config.set('Ripple', 'before_radius', str(int(self.ripple_before_radius)))
        self.config.set('Ripple', 'after_radius', str(int(self.ripple_after_radius)))

    def get_timeline_settings(self):
        return {
            'min_display_frames': int(self.min_display_frames),
            'max_display_frames': int(self.max_display_frames),
        }

    def get_interaction_settings(self):
        return {
            'drag_threshold_px': self.drag_threshold_px,
            'handle_drag_delay_ms': self.handle_drag_delay_ms,
            'ripple_apply_delay_ms': self.ripple_apply_delay_ms,
            'recompute_delay_ms': self.recompute_delay_ms,
            'click_guard_ms': self.click_guard_ms,
            'commit_delay_ms': self.commit_delay_ms,
        }

    def get_ripple_settings(self):
        return {
            'before_mode': self.ripple_before_mode,
            'before_radius': int(self.ripple_before_radius),
            'after_mode': self.ripple_after_mode,
            'after_radius': int(self.ripple_after_radius),
        }

    def get_default_interaction_settings(self):
        return dict(self.DEFAULT_INTERACTION_SETTINGS)

    def update_timeline_settings(self, *, min_display_frames=None, max_display_frames=None):
        if min_display_frames is not None:
            self.min_display_frames = max(1, int(min_display_frames))
        if max_display_frames is not None:
            self.max_display_frames = max(1, int(max_display_frames))
        if self.max_display_frames < self.min_display_frames:
            raise ValueError("max_display_frames must not be smaller than min_display_frames")
        self._sync_timeline_settings_to_config()
        self.settings_changed.emit()

    def update_interaction_settings(self, **values):
        for option, value in values.items():
            if option not in self.DEFAULT_INTERACTION_SETTINGS:
                raise ValueError(f"Unknown interaction setting: {option}")
            try:
                numeric = float(value)
            except (TypeError, ValueError):
                raise ValueError(f"Interaction setting {option} must be numeric") from None
            if option == 'drag_threshold_px':
                self.drag_threshold_px = max(0.0, numeric)
            else:
                setattr(self, option, max(0, int(numeric)))
        self._sync_interaction_settings_to_config()
        self.settings_changed.emit()

    def update_ripple_settings(self, *, before_mode=None, before_radius=None, after_mode=None, after_radius=None):
        if before_mode is not None:
            self.ripple_before_mode = self._coerce_mode(before_mode, self.ripple_before_mode)
        if after_mode is not None:
            self.ripple_after_mode = self._coerce_mode(after_mode, self.ripple_after_mode)
        if before_radius is not None:
            self.ripple_before_radius = max(1, int(before_radius))
        if after_radius is not None:
            self.ripple_after_radius = max(1, int(after_radius))
        self._sync_ripple_settings_to_config()
        self.settings_changed.emit()

    @staticmethod
    def _coerce_mode(mode, fallback):
        if isinstance(mode, SpreadMode):
            return mode
        try:
            return SpreadMode(mode)
        except ValueError:
            return fallback
