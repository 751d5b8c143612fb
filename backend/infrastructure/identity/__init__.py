from infrastructure.identity.identity_provider import (
    AnonymousIdentity,
    FirebaseTokenIdentity,
    FixedIdentity,
    create_identity,
)

__all__ = ["AnonymousIdentity", "FirebaseTokenIdentity", "FixedIdentity", "create_identity"]
