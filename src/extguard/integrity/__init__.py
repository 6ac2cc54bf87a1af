"""Supply-chain integrity verification against known-good hashes."""

from extguard.integrity.database import (
    HashDatabaseError,
    add_hash,
    load_hash_database,
    load_user_hashes,
    save_hash_database,
)
from extguard.integrity.verifier import (
    ExtensionHash,
    IntegrityResult,
    IntegrityStatus,
    compute_extension_hashes,
    create_hash_record,
    hash_key,
    integrity_finding,
    sha256,
    verify_integrity,
)

__all__ = [
    "ExtensionHash",
    "HashDatabaseError",
    "IntegrityResult",
    "IntegrityStatus",
    "add_hash",
    "compute_extension_hashes",
    "create_hash_record",
    "hash_key",
    "integrity_finding",
    "load_hash_database",
    "load_user_hashes",
    "save_hash_database",
    "sha256",
    "verify_integrity",
]
