"""Database schema DDL. All tables use CREATE IF NOT EXISTS for idempotency."""

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS events (
    stream_id TEXT NOT NULL,
    stream_version INTEGER NOT NULL,
    event_type TEXT NOT NULL,
    payload TEXT NOT NULL,
    recorded_at TEXT NOT NULL,
    PRIMARY KEY (stream_id, stream_version)
);

CREATE INDEX IF NOT EXISTS idx_events_event_type ON events(event_type);

CREATE TABLE IF NOT EXISTS outbox (
    outbox_id INTEGER PRIMARY KEY AUTOINCREMENT,
    topic TEXT NOT NULL,
    event_type TEXT NOT NULL,
    event_version INTEGER NOT NULL,
    stream_id TEXT NOT NULL,
    stream_version INTEGER NOT NULL,
    occurred_at INTEGER NOT NULL,
    payload TEXT NOT NULL,
    delivered_at TEXT,
    UNIQUE (stream_id, stream_version)
);

CREATE INDEX IF NOT EXISTS idx_outbox_pending ON outbox(delivered_at, outbox_id);

CREATE TABLE IF NOT EXISTS time_entries (
    user_id TEXT NOT NULL,
    time_entry_id TEXT NOT NULL,
    start_time INTEGER NOT NULL,
    end_time INTEGER NOT NULL,
    tags TEXT NOT NULL DEFAULT '[]',
    description TEXT NOT NULL DEFAULT '',
    created_at INTEGER NOT NULL,
    created_by TEXT NOT NULL,
    updated_at INTEGER NOT NULL,
    updated_by TEXT NOT NULL,
    deleted_at INTEGER,
    last_event_id TEXT,
    last_event_version INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (user_id, time_entry_id)
);

CREATE INDEX IF NOT EXISTS idx_time_entries_user_start
    ON time_entries(user_id, start_time, time_entry_id);

CREATE TABLE IF NOT EXISTS projector_watermarks (
    projector_name TEXT PRIMARY KEY,
    last_event_id TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""
