"""Application-wide constants.

This module centralizes magic numbers and fixed strings so that the
extractor, prompt builder and provider adapters share a single source
of truth.
"""

# =============================================================================
# Page Fetching
# =============================================================================

# User agent sent when fetching a target page by URL
PAGE_FETCH_USER_AGENT = "Mozilla/5.0 UX-Audit-Demo"

# Timeout for fetching a target page (seconds)
DEFAULT_PAGE_FETCH_TIMEOUT_SECONDS = 15.0

# Only absolute http(s) URLs are fetched
FETCHABLE_URL_PATTERN = r"^https?://"

# =============================================================================
# Prompt Construction
# =============================================================================

# Hard character cap on the raw HTML appended to the prompt
MAX_PROMPT_HTML_CHARS = 4000

# Placeholder written for empty string signals
EMPTY_SIGNAL_PLACEHOLDER = "(none)"

# =============================================================================
# Provider Defaults
# =============================================================================

DEFAULT_LOCAL_MODEL = "deepseek-r1:14b"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"
DEFAULT_CONTENT_MODEL = "gemini-2.5-flash-lite"

DEFAULT_LOCAL_BASE_URL = "http://localhost:11434"
DEFAULT_CHAT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CONTENT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

# Model names belonging to hosted provider families; never forwarded to the local API
FOREIGN_MODEL_PATTERN = r"^gpt-|^gemini"

# Timeout for model provider calls (seconds). Streaming reads use it per read.
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 120.0

# =============================================================================
# Streaming
# =============================================================================

# Bounded channel between upstream reader and response writer
DEFAULT_STREAM_QUEUE_SIZE = 8

# Server-Sent-Events end-of-stream sentinel
SSE_DONE_SENTINEL = "[DONE]"

# Delta sent when a one-shot answer has neither candidate text nor a body
EMPTY_ANSWER_PLACEHOLDER = "[empty text]"

# Content type of the outbound delta stream and forwarded upstream errors
DELTA_STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
