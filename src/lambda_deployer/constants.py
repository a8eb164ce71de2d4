# ==========================================
# 1. Project Layout
# ==========================================
CODE_DIRECTORY_NAME = ".lambda"
PACKAGE_MANIFEST_FILE = "requirements.txt"
DEPENDENCY_DIRECTORY = "/.venv"
POST_INSTALL_SCRIPT = "post_install.sh"

DEFAULT_EVENT_FILE = "event.json"
DEFAULT_CONTEXT_FILE = "context.json"
DEFAULT_ENV_FILE = ".env"

# Always excluded from the staging directory; user globs are appended.
# A leading "/" anchors the pattern to the source root.
BUILTIN_EXCLUDES = [
    ".git*",
    "*.swp",
    ".editorconfig",
    CODE_DIRECTORY_NAME,
    "deploy.env",
    "*.log",
    "/build/",
]

# ==========================================
# 2. External Tools
# ==========================================
MAX_BUFFER_SIZE = 50 * 1024 * 1024
DOCKER_TASK_ROOT = "/var/task"
NATIVE_ZIP_EXECUTABLE = "zip"

# ==========================================
# 3. Lambda Defaults
# ==========================================
LAMBDA_API_VERSION = "2015-03-31"
DEFAULT_RUNTIME = "python3.12"
DEFAULT_HANDLER = "lambda_function.lambda_handler"
DEFAULT_MEMORY_SIZE = 128
DEFAULT_TIMEOUT = 3
DEFAULT_REGION = "us-east-1"

DEFAULT_BATCH_SIZE = 100
DEFAULT_STARTING_POSITION = "LATEST"

MAX_LOCAL_TIMEOUT_SECONDS = 300
SUPPORTED_LOCAL_RUNTIMES = [
    "python3.9",
    "python3.10",
    "python3.11",
    "python3.12",
    "python3.13",
]

# ==========================================
# 4. Scheduled Events
# ==========================================
SCHEDULER_PRINCIPAL = "events.amazonaws.com"
INVOKE_ACTION = "lambda:InvokeFunction"
