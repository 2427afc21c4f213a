"""Constants for the Recipe Importer."""

# Default values
DEFAULT_APP_URL = "http://localhost:3000"
DEFAULT_TIMEOUT = 15
DEFAULT_MAX_RESPONSE_SIZE = 5 * 1024 * 1024  # 5 MB
DEFAULT_MAX_REDIRECTS = 10
DEFAULT_BOOKMARKLET_TIMEOUT_MS = 30000
DEFAULT_LOG_LEVEL = "INFO"

# Rounding tolerance used when formatting scaled quantities
SIMPLIFY_TOLERANCE = 0.05

# Environment variables
ENV_APP_URL = "RECIPE_IMPORTER_APP_URL"
ENV_FETCH_TIMEOUT = "RECIPE_IMPORTER_FETCH_TIMEOUT"
ENV_MAX_RESPONSE_SIZE = "RECIPE_IMPORTER_MAX_RESPONSE_SIZE"
ENV_MAX_REDIRECTS = "RECIPE_IMPORTER_MAX_REDIRECTS"
ENV_BOOKMARKLET_TIMEOUT_MS = "RECIPE_IMPORTER_BOOKMARKLET_TIMEOUT_MS"
ENV_LOG_LEVEL = "RECIPE_IMPORTER_LOG_LEVEL"

# Desktop browser header set sent with every page fetch
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Cache-Control": "no-cache",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Upgrade-Insecure-Requests": "1",
}

# Schema.org type spellings accepted as a Recipe
RECIPE_TYPES = frozenset({
    "Recipe",
    "http://schema.org/Recipe",
    "https://schema.org/Recipe",
})

# Scrape error values
ERROR_BLOCKED = "blocked"
ERROR_FETCH_FAILED = "Failed to fetch URL"
ERROR_NO_STRUCTURED_DATA = "Could not parse recipe structured data. Please fill in manually."
ERROR_NO_RECIPE_SCHEMA = "No Recipe schema found on this page"
ERROR_INVALID_URL = "Invalid URL"
ERROR_INVALID_REQUEST = "Invalid request"

# Import record statuses
STATUS_PARSED = "parsed"
STATUS_FAILED = "failed"

# Bookmarklet protocol
MESSAGE_READY = "aleppo:ready"
MESSAGE_DATA = "aleppo:data"
IMPORT_PAGE_PATH = "/recipes/import"
BOOKMARKLET_IMPORT_ENDPOINT = "/api/import/bookmarklet"
POPUP_WINDOW_NAME = "aleppo_import"
POPUP_FEATURES = "width=1100,height=800"
POPUP_BLOCKED_MESSAGE = "Aleppo: allow popups for this site, then click the bookmarklet again."

# Payload keys
DATA_JSONLD = "jsonld"
DATA_URL = "url"
DATA_TITLE = "title"
DATA_OG_IMAGE = "ogImage"
DATA_SITE_NAME = "siteName"
DATA_RECIPE = "recipe"
DATA_RAW_PAYLOAD = "rawPayload"
DATA_ERROR = "error"
DATA_PARSE_ERROR = "parseError"
DATA_STATUS = "status"
