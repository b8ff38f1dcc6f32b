"""Keep Deep Rock Galactic mods in sync with the community mod registry."""

__version__ = "0.1.0"
