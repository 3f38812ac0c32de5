"""Firebase clients (REST-based, no firebase-admin).

Initialized at app startup using either FIREBASE_SERVICE_ACCOUNT_KEY (JSON string)
or FIREBASE_SERVICE_ACCOUNT_PATH (file path). One set of service-account
credentials backs both the Firestore client and the Auth gateway.
"""

import json
import logging
from pathlib import Path

from classconnect.core.config import Settings, get_settings
from classconnect.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)
from classconnect.infrastructure.firebase.identity_toolkit import FirebaseAuthGateway

logger = logging.getLogger(__name__)

_firestore_client: FirestoreRESTClient | None = None
_auth_gateway: FirebaseAuthGateway | None = None


def _load_key_dict(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path."""
    key_json = (
        settings.firebase_service_account_key.get_secret_value()
        if settings.firebase_service_account_key
        else None
    )
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            logger.warning(
                "FIREBASE_SERVICE_ACCOUNT_PATH set but file not found: %s (resolved: %s)",
                path,
                resolved,
            )
            return None
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def init_firebase(settings: Settings | None = None) -> bool:
    """Initialize the Firestore client and the Auth gateway.

    Safe to call when no service account is configured (no-op). Idempotent if
    already initialized. On invalid credentials or any initialization error,
    logs the exception and returns False so the app can start without Firebase.

    Returns:
        True if both clients were initialized, False if disabled or on error.
    """
    global _firestore_client, _auth_gateway
    if _firestore_client is not None and _auth_gateway is not None:
        return True
    settings = settings or get_settings()
    try:
        key_dict = _load_key_dict(settings)
        if not key_dict:
            return False

        project_id = settings.firebase_project_id or key_dict.get("project_id")
        if not project_id:
            logger.error("Firebase service account JSON missing 'project_id'")
            return False

        cred = _get_credentials(key_dict)
        _firestore_client = FirestoreRESTClient(
            project_id,
            cred,
            base_url=settings.firestore_base_url,
            timeout=settings.firebase_http_timeout_seconds,
        )
        web_api_key = (
            settings.firebase_web_api_key.get_secret_value()
            if settings.firebase_web_api_key
            else None
        )
        if not web_api_key:
            logger.warning("FIREBASE_WEB_API_KEY not set; rep login and password change will fail")
        _auth_gateway = FirebaseAuthGateway(
            project_id,
            cred,
            web_api_key,
            base_url=settings.identity_toolkit_base_url,
            timeout=settings.firebase_http_timeout_seconds,
        )
        return True
    except Exception:
        logger.exception("Firebase initialization failed")
        _firestore_client = None
        _auth_gateway = None
        return False


def get_firestore_client() -> FirestoreRESTClient | None:
    """Return the Firestore client, or None if not configured."""
    return _firestore_client


def get_auth_gateway() -> FirebaseAuthGateway | None:
    """Return the Auth gateway, or None if not configured."""
    return _auth_gateway


async def close_firebase() -> None:
    """Close both HTTP connection pools. Call from app shutdown."""
    global _firestore_client, _auth_gateway
    if _auth_gateway is not None:
        await _auth_gateway.aclose()
        _auth_gateway = None
    if _firestore_client is not None:
        await _firestore_client.aclose()
        _firestore_client = None
        logger.info("Firebase HTTP clients closed")
