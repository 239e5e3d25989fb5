"""ConfTrack - conference deadline tracking and reminders."""
__version__ = "0.1.0"
