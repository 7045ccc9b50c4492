"""Device keypair and DID handling."""
from .keys import Identity, generate_identity, make_did, persist_identity, validate_did

__all__ = ["Identity", "generate_identity", "make_did", "persist_identity", "validate_did"]
