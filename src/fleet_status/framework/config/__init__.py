"""Configuration for the fleet status tools."""

from .settings import TRUTHY_VALUES, FleetStatusSettings, load_settings

__all__ = ["FleetStatusSettings", "TRUTHY_VALUES", "load_settings"]
