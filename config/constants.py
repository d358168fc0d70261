"""
Centralized constants for AI Subtitle Translator.
All magic numbers live here.
"""

# ===========================================
# SUBTITLES
# ===========================================
TIMESTAMP_MARKER = '-->'              # separates start/end in an SRT timing line
SUBTITLE_EXTENSIONS = ('.srt', '.vtt', '.sub')
BATCH_SEPARATOR = '\n'                # appended after every translated batch

# ===========================================
# TRANSLATION
# ===========================================
DEFAULT_MODEL = 'gemini-1.5-flash-8b'
DEFAULT_BATCH_SIZE = 50               # replicas per oracle request
TRANSLATION_MAX_TOKENS = 8192
TRANSLATION_TEMPERATURE = 0.3

# ===========================================
# ORACLE RETRY
# ===========================================
ORACLE_RETRY_DELAY = 10.0             # seconds before the first retry
ORACLE_BACKOFF_FACTOR = 2.0
ORACLE_MAX_RETRY_DELAY = 300.0        # 5 minutes
ORACLE_MAX_ATTEMPTS = 8               # 0 = retry forever

# ===========================================
# JOB / SESSION RETENTION
# ===========================================
JOB_RETENTION_SECONDS = 3600          # 1 hour
CLEANUP_INTERVAL_SECONDS = 1800       # 30 minutes

# ===========================================
# API / SERVER
# ===========================================
SERVER_NAME = 'AI Subtitle Translator Server'
SERVER_VERSION = '0.3.0'
SERVER_API = 'workflow-based'
DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 9090
API_RATE_LIMIT = '600/minute'

# JSON-RPC error codes
RPC_PARSE_ERROR = -32700
RPC_INVALID_REQUEST = -32600
RPC_METHOD_NOT_FOUND = -32601
RPC_INVALID_PARAMS = -32602
RPC_STATE_ERROR = -32603
RPC_SERVER_ERROR = -32000

# ===========================================
# MEDIA TOOLING
# ===========================================
FFMPEG_DIR_NAME = 'ffmpeg'
FFMPEG_PROBE_TIMEOUT = 60             # seconds
FFMPEG_EXTRACT_TIMEOUT = 600

# ===========================================
# LOGGING
# ===========================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE_NAME = 'subtitle_translator.log'    # under <data_dir>/logs unless LOG_FILE is set
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
