"""Assign a Class Representative from the command line (bootstrap / support).

Usage:
    python -m scripts.assign_rep <issuer_uid> <student_email> <college_id> <department_id> <slot> <year> [student_uid]

Prints the generated password once. Requires Firebase credentials in the
environment (FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH).
"""

import asyncio
import sys

from classconnect.application.dtos.representative import RepStub
from classconnect.application.services.rep_lifecycle import RepLifecycleManager
from classconnect.domain.exceptions import ClassConnectException
from classconnect.domain.value_objects import RepScope
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

USAGE = (
    "Usage: python -m scripts.assign_rep <issuer_uid> <student_email> "
    "<college_id> <department_id> <slot> <year> [student_uid]"
)


async def main() -> None:
    """Assign the student to the seat and print the one-time password."""
    if len(sys.argv) < 7:
        print(USAGE, file=sys.stderr)
        sys.exit(1)
    issuer_uid, email, college_id, department_id, slot, year = sys.argv[1:7]
    student_uid = sys.argv[7] if len(sys.argv) > 7 else None

    if not init_firebase():
        print("Firebase is not configured", file=sys.stderr)
        sys.exit(1)
    firestore = get_firestore_client()
    gateway = get_auth_gateway()
    try:
        manager = RepLifecycleManager(
            FirestoreCredentialStore(firestore),
            FirestoreAssignmentLog(firestore),
            gateway,
        )
        result = await manager.assign(
            issuer_id=issuer_uid,
            stub=RepStub(email=email, identity_id=student_uid),
            scope=RepScope(college_id, department_id, slot, year),
        )
    except (ClassConnectException, ValueError) as e:
        print(f"Assignment failed: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await close_firebase()
    print(f"Assigned {result.identity_id} (password version {result.password_version})")
    print(f"Password: {result.password}")


if __name__ == "__main__":
    asyncio.run(main())
