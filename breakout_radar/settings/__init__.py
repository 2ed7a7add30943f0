# breakout_radar/settings/__init__.py
"""Lean settings package initializer.

Intentionally avoids eager re-exports to prevent circular imports and heavy
import-time side effects. Import submodules directly:

  from breakout_radar.settings import settings as SETTINGS
  from breakout_radar.settings.breakout_settings import BreakoutConfig
"""

__all__ = ()  # no eager exports on purpose
