"""CAN bus frames, filters, dispatchers, SocketCAN and broadcast manager drivers, and bridge helpers."""

__version__ = "0.1.0"