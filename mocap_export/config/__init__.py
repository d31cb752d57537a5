"""Configuration module for mocap-export."""

from mocap_export.config.settings import Settings, SmoothingConfig, ExportConfig

__all__ = ["Settings", "SmoothingConfig", "ExportConfig"]
