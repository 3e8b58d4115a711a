"""Allowlisting image gateway for third-party webcam feeds."""

__version__ = "1.0.0"
