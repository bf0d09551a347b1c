# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TCELFLOW_APP_NAME": "App display name (default: tcelflow).",
    "TCELFLOW_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "TCELFLOW_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "TCELFLOW_DATA_DIR": "Local data directory (default: .local/tcelflow).",
    "TCELFLOW_EXPORT_DIR": "Where /export writes files (default: <data_dir>/exports).",
    # Durable store
    "TCELFLOW_DURABLE_ENABLED": "Use the SQLite durable store (true/false, default: true).",
    "TCELFLOW_DURABLE_DB_PATH": "SQLite file (default: <data_dir>/tcelflow-db.sqlite3).",
    "TCELFLOW_DURABLE_NAMESPACE": "Key/value table name inside the SQLite file (default: kv).",
    # Fallback store
    "TCELFLOW_FALLBACK_PATH": "Fallback JSON file (default: <data_dir>/local_storage.json).",
    "TCELFLOW_FALLBACK_QUOTA_BYTES": "Fallback store capacity in bytes (default: 5242880).",
    # UI
    "TCELFLOW_NOTIFY_TIMEOUT_MS": "How long notifications stay visible (default: 3500).",
}
