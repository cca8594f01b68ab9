from .stdout import StdoutNotificationRepository

__all__ = [
    "StdoutNotificationRepository",
]
