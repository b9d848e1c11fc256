"""Realtime change notification."""

from impostor.comms.notifier import ChangeNotifier, Subscription

__all__ = ["ChangeNotifier", "Subscription"]
