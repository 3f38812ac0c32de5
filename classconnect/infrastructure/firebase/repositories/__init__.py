"""Firestore-backed repository implementations."""

from classconnect.infrastructure.firebase.repositories.assignment_log_firestore import (
    FirestoreAssignmentLog,
)
from classconnect.infrastructure.firebase.repositories.credential_store_firestore import (
    FirestoreCredentialStore,
)
from classconnect.infrastructure.firebase.repositories.password_reset_firestore import (
    FirestorePasswordResetStore,
)

__all__ = [
    "FirestoreAssignmentLog",
    "FirestoreCredentialStore",
    "FirestorePasswordResetStore",
]
