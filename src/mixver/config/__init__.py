"""Configuration loading for mixver."""

from mixver.config.settings import ClusterSettingConfig, MixverConfig, load_config

__all__ = ["ClusterSettingConfig", "MixverConfig", "load_config"]
