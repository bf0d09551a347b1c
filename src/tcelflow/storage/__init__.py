"""
Storage backends.

Components:
- durable.py: SQLite key/value store (per-operation connections, async API)
- fallback.py: small synchronous JSON-file store with a byte quota
- chain.py: typed read results and ordered fallback reads
"""
