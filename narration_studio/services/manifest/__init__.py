from .service import ManifestRepository, get, normalize_entry, parse_manifest, serialize_manifest, upsert

__all__ = ["ManifestRepository", "get", "normalize_entry", "parse_manifest", "serialize_manifest", "upsert"]
