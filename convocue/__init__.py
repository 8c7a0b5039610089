"""ConvoCue: live conversation cues from transcribed speech."""

__version__ = "0.1.0"
