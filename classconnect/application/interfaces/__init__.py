"""Ports used by the application services."""

from classconnect.application.interfaces.repositories import (
    IAssignmentLog,
    ICredentialStore,
    IPasswordResetStore,
)
from classconnect.application.interfaces.services import IAuthGateway, IResetNotifier

__all__ = [
    "IAssignmentLog",
    "IAuthGateway",
    "ICredentialStore",
    "IPasswordResetStore",
    "IResetNotifier",
]
