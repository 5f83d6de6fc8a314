"""Application constants and configuration."""

from pathlib import Path

# Application metadata
APP_NAME = "hotify"
APP_VERSION = "1.0.0"

# Paths
CONFIG_DIR = Path.home() / ".config" / "hotify"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
LOG_FILE = CONFIG_DIR / "cli.log"

# Environment overrides for the default connection settings
ADDRESS_ENV = "HOTIFY_ADDRESS"
SECRET_ENV = "HOTIFY_SECRET"

# Default settings
DEFAULT_ADDRESS = "http://localhost:1234"
DEFAULT_SECRET = "secret"
DEFAULT_TIMEOUT = 30  # seconds
DEFAULT_LOG_POLL_INTERVAL = 1  # seconds

# Request signing
SIGNATURE_HEADER = "X-Signature-256"
SIGNATURE_PREFIX = "sha256="
CONTENT_TYPE = "application/json"

# Labels used when printing service status
STATUS_LABELS = {
    0: "running",
    1: "stopped",
}
