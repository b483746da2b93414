# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets (the gateway token). Use a local, gitignored .env.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "SMS_APP_NAME": "App display name (default: sms-scheduler).",
    "SMS_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Switches
    "SMS_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "SMS_SCHEDULER_ENABLED": "Run the background scheduler (true/false, default: true).",
    # Paths (gitignored)
    "SMS_DATA_DIR": "Local data directory (default: .local/sms_scheduler).",
    "SMS_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Scheduler
    "SMS_TICK_INTERVAL_SECONDS": "Seconds between scheduler ticks (default: 60).",
    "SMS_MAX_CONCURRENCY": "Max deliveries in flight within one tick (default: 4).",
    "SMS_BATCH_LIMIT": "Max tasks selected per tick, 0 = unlimited (default: 500).",
    # Gateway
    "SMS_GATEWAY_URL": "SMS gateway base URL; unset => offline sender (logs only).",
    "SMS_GATEWAY_TOKEN": "Optional bearer token for the gateway.",
    "SMS_GATEWAY_TIMEOUT_SECONDS": "Gateway request timeout (default: 10).",
}
