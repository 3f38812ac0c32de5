"""Infrastructure service implementations."""

from classconnect.infrastructure.services.reset_notifier import LogOnlyResetNotifier

__all__ = ["LogOnlyResetNotifier"]
