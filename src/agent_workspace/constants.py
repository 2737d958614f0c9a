"""Limits and environment variable names shared by the filesystem tools."""

# Size caps (bytes)
DEFAULT_MAX_READ_BYTES = 1024 * 1024
DEFAULT_MAX_WRITE_BYTES = 1024 * 1024

# Directory listing
DEFAULT_MAX_ENTRIES = 200
MAX_ENTRIES_CAP = 500

# Line-windowed reads
DEFAULT_MAX_LINES = 200
MAX_LINES_CAP = 1000

# Text search
DEFAULT_MAX_MATCHES = 50
SNIPPET_MAX_LENGTH = 200

# Binary detection sample size
BINARY_CHECK_SIZE = 8192

# Environment variables
ENV_WORKSPACE_ROOT = "AGENT_WORKSPACE_ROOT"
ENV_CONFIG_WORKSPACE_ROOT = "AGENT_CONFIG_WORKSPACE_ROOT"
ENV_WRITES_ENABLED = "AGENT_FILESYSTEM_WRITES_ENABLED"
ENV_MAX_READ_BYTES = "AGENT_FILESYSTEM_MAX_READ_BYTES"
ENV_MAX_WRITE_BYTES = "AGENT_FILESYSTEM_MAX_WRITE_BYTES"
