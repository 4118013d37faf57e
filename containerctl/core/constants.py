"""Constants used throughout the containerctl application."""

import re


# Configuration
DATA_DIR_NAME = ".containerctl"
CONFIG_FILE_NAME = "config.json"
CONFIG_DIR_ENV = "CONTAINERCTL_CONFIG_DIR"
CONFIG_ENV_VARS = {
    "api_url": "CONTAINERCTL_API_URL",
    "account_id": "CONTAINERCTL_ACCOUNT_ID",
    "api_token": "CONTAINERCTL_API_TOKEN",
}
DEFAULT_API_URL = "https://api.cloudflare.com/client/v4"
DEFAULT_REQUEST_TIMEOUT = 30  # seconds

# Identifier shapes
CONTAINER_ID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE,
)
INSTANCE_ID_LENGTH = 64

# SSH tunnel
SSH_BINARY = "ssh"
SSH_REMOTE_USER = "cloudchamber"
PROXY_HOST = "127.0.0.1"
SSH_HANDSHAKE_FAILURE_CODE = 255
PROXY_ACCEPT_POLL_INTERVAL = 0.2  # seconds
RELAY_CHUNK_SIZE = 64 * 1024

# SSH flags passed straight through to the client, in emission order
SSH_PASSTHROUGH_FLAGS = [
    ('c', 'cipher_spec'),
    ('E', 'log_file'),
    ('e', 'escape_char'),
    ('F', 'configfile'),
    ('I', 'pkcs11'),
    ('i', 'identity_file'),
    ('m', 'mac_spec'),
    ('O', 'ctl_cmd'),
    ('o', 'option'),
    ('P', 'tag'),
    ('S', 'ctl_path'),
]

# Console messages
DASHBOARD_URL = "https://dash.cloudflare.com/?to=/:account/workers/containers"
NO_CONTAINERS_MESSAGE = f"No containers found. See {DASHBOARD_URL} to learn more."
