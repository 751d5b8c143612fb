"""Movie store adapters (in-memory and Cloud Firestore)."""
