"""Reporter names, sentinel texts, wire constants and ingestion defaults."""

# Reporter used for every event the viewer synthesizes itself
SYSTEM_REPORTER = "Logger"

# Lifecycle sentinels
STARTED_TEXT = "Logging started."
RESTARTED_TEXT = "Logging restarted."

# In-band error prefixes
UNEXPECTED_ENVELOPE_PREFIX = "Ignoring unexpected envelope: "
NON_LOG_PAYLOAD_PREFIX = "Ignoring non-log payload: "
EXCEPTION_PREFIX = "Exception: "

# Envelope wire format: [topic, kind, body]
OBJECT_KIND = b"object"
ENVELOPE_FRAME_COUNT = 3

# Longest raw envelope description embedded in an error event
MAX_RAW_DESCRIPTION = 200

# Broker defaults
DEFAULT_ADDRESS = "tcp://localhost:61616"
DEFAULT_TOPIC = "logging"

# Ingestion loop (seconds)
POLL_TIMEOUT = 1.0
RECONNECT_INITIAL_DELAY = 1.0
RECONNECT_MAX_DELAY = 30.0
RECONNECT_MULTIPLIER = 2.0

# Retained rows before oldest-first eviction
DEFAULT_MAX_EVENTS = 10_000

# Main window
WINDOW_TITLE = "Log Watcher"
WINDOW_WIDTH = 795
WINDOW_HEIGHT = 350
