"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when you first write a document. The mobile client reads the same
collections, so these names are part of the wire contract.
"""

# One document per provider identity; keyed by the provider uid.
COLLECTION_USERS = "users"
# Append-only audit log of assignments and reassignments.
COLLECTION_REP_ASSIGNMENTS = "repAssignments"
COLLECTION_PASSWORD_RESETS = "passwordResets"
