# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

Every name below is read by genagent.config.Settings.from_env().
"""

ENV_VARS = {
    # App / logging
    "GENAGENT_APP_NAME": "App display name used in the system prompt (default: genagent).",
    "GENAGENT_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "GENAGENT_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # LLM (OpenAI-compatible endpoint)
    "GENAGENT_LLM_API_KEY": "API key; falls back to OPENAI_API_KEY. Without a key the offline echo client is used.",
    "GENAGENT_LLM_BASE_URL": "Base URL (default: https://api.openai.com/v1).",
    "GENAGENT_LLM_MODELS": "Comma/space separated list of models to try in order (default: gpt-4o-mini).",
    "GENAGENT_LLM_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "GENAGENT_LLM_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 60).",
    # Paths (gitignored)
    "GENAGENT_DATA_DIR": "Local data directory; genagent.log is written here (default: .local/genagent).",
    "GENAGENT_TASKS_DB_PATH": "Schedule store SQLite path (default: <data_dir>/schedules.sqlite3).",
    # Scheduler tuning
    "GENAGENT_CRON_POLL_SECONDS": "Recurring-task poll interval; matching is per minute (default: 60).",
    "GENAGENT_DEFAULT_MAX_ATTEMPTS": "Stored max attempts for new tasks without an explicit value (default: 5).",
}
