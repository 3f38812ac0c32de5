"""Print a Class Representative's status.

Usage:
    python -m scripts.rep_status <uid>
"""

import asyncio
import sys

from classconnect.application.services.rep_lifecycle import RepLifecycleManager
from classconnect.domain.exceptions import ClassConnectException
from classconnect.infrastructure.firebase import (
    close_firebase,
    get_auth_gateway,
    get_firestore_client,
    init_firebase,
)
from classconnect.infrastructure.firebase.repositories import (
    FirestoreAssignmentLog,
    FirestoreCredentialStore,
)


async def main() -> None:
    """Look up uid and print its rep status."""
    if len(sys.argv) < 2:
        print("Usage: python -m scripts.rep_status <uid>", file=sys.stderr)
        sys.exit(1)
    uid = sys.argv[1]

    if not init_firebase():
        print("Firebase is not configured", file=sys.stderr)
        sys.exit(1)
    firestore = get_firestore_client()
    try:
        manager = RepLifecycleManager(
            FirestoreCredentialStore(firestore),
            FirestoreAssignmentLog(firestore),
            get_auth_gateway(),
        )
        status = await manager.get_status(uid)
    except ClassConnectException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)
    finally:
        await close_firebase()

    print(f"uid:             {status.identity_id}")
    print(f"active rep:      {status.is_active}")
    print(f"role:            {status.role}")
    print(f"passwordVersion: {status.password_version}")
    if status.disabled_at:
        print(f"disabled at:     {status.disabled_at.isoformat()} ({status.disabled_reason})")


if __name__ == "__main__":
    asyncio.run(main())
