"""Centralized constants"""

# Redis
DEFAULT_REDIS_URL = "redis://localhost:6379/0"
RUN_HISTORY_LIMIT = 100

# Mail
MAIL_OUTBOX_LIMIT = 100

# Timeouts
DEFAULT_API_CALL_TIMEOUT_SECONDS = 30
MAX_API_CALL_TIMEOUT_SECONDS = 300
MIN_API_CALL_TIMEOUT_SECONDS = 1

# Limits
MAX_NODES_PER_WORKFLOW = 1000

# Trace messages
NO_START_NODE_MESSAGE = "No start node found"
RUN_SUCCEEDED_MESSAGE = "Workflow executed successfully"

# AI assistant
DEFAULT_ANTHROPIC_MODEL = "claude-3-7-sonnet-20250219"
TEMPLATE_MAX_TOKENS = 2000
ANALYSIS_MAX_TOKENS = 1500
RESULTS_ANALYSIS_MAX_TOKENS = 1000
