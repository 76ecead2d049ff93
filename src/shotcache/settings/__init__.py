from .manager import SettingsManager, default_cache_dir, default_settings_path

__all__ = ["SettingsManager", "default_cache_dir", "default_settings_path"]
