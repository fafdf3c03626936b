"""Discrete-event emulator of a lossy channel with Go-Back-N and Selective Repeat protocols."""

__version__ = "0.1.0"
__all__ = ["packet", "simulator", "gbn", "sr", "cli"]