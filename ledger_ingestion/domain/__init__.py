"""Pure ingestion domain: types, normalizers, validators. No I/O."""
