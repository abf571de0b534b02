"""SiteScene - site metrics and 3D scene assembly for building footprints."""

__version__ = "0.1.0"
