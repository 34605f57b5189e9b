"""vehicle – EV description and effective range."""

from .vehicle import Vehicle

__all__ = ["Vehicle"]
