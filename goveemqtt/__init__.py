"""Govee packet codecs, a response cache, work-mode parsing and Home Assistant MQTT discovery configs."""

__version__ = "0.1.0"