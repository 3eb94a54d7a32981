DEFAULT_CONFIG_PATH = "mcp-server.json"
DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 1000

CLIENT_VERSION = "1.0.0"
