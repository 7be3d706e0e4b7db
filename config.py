# config.py
import json
import os

# --- Crawler ---
CRAWLER_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
}

# --- HTTP Client Defaults ---
CRAWLER_HTTP_TOTAL_TIMEOUT_SECONDS = int(os.getenv('CRAWLER_HTTP_TOTAL_TIMEOUT_SECONDS', 30))
CRAWLER_HTTP_CONNECT_TIMEOUT_SECONDS = int(os.getenv('CRAWLER_HTTP_CONNECT_TIMEOUT_SECONDS', 10))
CRAWLER_HTTP_SOCK_READ_TIMEOUT_SECONDS = int(os.getenv('CRAWLER_HTTP_SOCK_READ_TIMEOUT_SECONDS', 20))

# dto.to was migrated to bato.ing; old links answer 404 on the old host.
MIRROR_FALLBACK_HOSTS = {
    'dto.to': 'bato.ing',
}

# --- Site Layouts ---
WEBTOONS_HOSTS = ('www.webtoons.com',)
BATO_V2_HOSTS = ('bato.ing', 'bato.si')
WEBTOONS_BASE_URL = os.getenv('WEBTOONS_BASE_URL', 'https://www.webtoons.com')
BATO_BASE_URL = os.getenv('BATO_BASE_URL', 'https://bato.ing')

# --- Bulk Sweeps ---
UPDATE_SWEEP_BATCH_SIZE = int(os.getenv('UPDATE_SWEEP_BATCH_SIZE', 3))
COVER_CHECK_BATCH_SIZE = int(os.getenv('COVER_CHECK_BATCH_SIZE', 10))
BATCH_DELAY_SECONDS = float(os.getenv('BATCH_DELAY_SECONDS', 1.0))
COVER_CHECK_TIMEOUT_SECONDS = float(os.getenv('COVER_CHECK_TIMEOUT_SECONDS', 3))

# --- Quality Checks ---
GENRE_SIMILARITY_THRESHOLD = float(os.getenv('GENRE_SIMILARITY_THRESHOLD', 0.75))
TITLE_SIMILARITY_THRESHOLD = float(os.getenv('TITLE_SIMILARITY_THRESHOLD', 0.70))
SCAN_CACHE_TTL_SECONDS = int(os.getenv('SCAN_CACHE_TTL_SECONDS', 900))
STALE_WAITING_MONTHS = int(os.getenv('STALE_WAITING_MONTHS', 6))

# --- Image Proxy ---
IMAGE_PROXY_URL = os.getenv('IMAGE_PROXY_URL', '').strip().rstrip('/')
IMAGE_PROXY_RETRY_ATTEMPTS = int(os.getenv('IMAGE_PROXY_RETRY_ATTEMPTS', 2))
IMAGE_PROXY_TIMEOUT_SECONDS = int(os.getenv('IMAGE_PROXY_TIMEOUT_SECONDS', 20))

# --- Database ---
DATABASE_PATH = os.getenv('DATABASE_PATH', 'bookshelf.db')


# --- CORS ---
def _parse_cors_origins(raw):
    if raw is None:
        return None
    stripped = raw.strip()
    if not stripped:
        return None
    if stripped.startswith('['):
        try:
            parsed = json.loads(stripped)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            origins = [str(item).strip() for item in parsed if str(item).strip()]
            return origins or None
    origins = [part.strip() for part in stripped.split(',') if part.strip()]
    return origins or None


CORS_ALLOW_ORIGINS = _parse_cors_origins(os.getenv('CORS_ALLOW_ORIGINS'))
CORS_SUPPORTS_CREDENTIALS = os.getenv('CORS_SUPPORTS_CREDENTIALS', '0').strip().lower() in {'1', 'true', 'yes', 'on'}
