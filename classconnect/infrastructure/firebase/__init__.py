"""Firestore and Firebase Auth integration (REST, no firebase-admin)."""

from classconnect.infrastructure.firebase.client import (
    close_firebase,
    get_auth_gateway,
    get_firestore_client,
    init_firebase,
)

__all__ = [
    "close_firebase",
    "get_auth_gateway",
    "get_firestore_client",
    "init_firebase",
]
