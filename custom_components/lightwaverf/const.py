"""Constants for LightwaveRF integration."""
DOMAIN = "lightwaverf"

CONF_FILE = "file"
CONF_EMAIL = "email"
CONF_PIN = "pin"
CONF_CLOUD_HOST = "cloud_host"
CONF_PACING_INTERVAL = "pacing_interval"
CONF_COMMAND_TIMEOUT = "command_timeout"

# Default configuration values
DEFAULT_HOST = "255.255.255.255"
DEFAULT_CLOUD_HOST = "https://control-api.lightwaverf.com"
DEFAULT_PACING_INTERVAL = 1.0
DEFAULT_COMMAND_TIMEOUT = 1.0

PLATFORMS = ["light", "switch", "cover"]

SIGNAL_QUEUE_OVERFLOW = "lightwaverf_queue_overflow"
