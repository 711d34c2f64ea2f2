"""
Application constants
"""

# GitHub API
GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
GITHUB_USER_AGENT = "tasksync"
GITHUB_PAGE_SIZE = 100  # GitHub maximum per page

# Substring identifying task context URLs that came from GitHub
GITHUB_URL_MARKER = "github.com"

# Fallback container name when an item's repository cannot be determined
UNKNOWN_CONTAINER = "unknown"

# Icon stamped on projects created for GitHub repositories
GITHUB_PROJECT_ICON = ""
DEFAULT_PROJECT_ICON = "📁"

# Task metadata keys for remote provenance
META_GITHUB_ID = "github_id"
META_GITHUB_TYPE = "github_type"
META_GITHUB_REPO = "github_repo"

# Retry configuration
MAX_RETRIES = 3
RETRY_DELAY = 1  # seconds
HTTP_TIMEOUT = 30  # seconds

# Storage
DEFAULT_DATABASE_PATH = "~/.local/share/tasksync/tasksync.db"
SCHEMA_VERSION = 1

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
