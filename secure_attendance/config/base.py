"""Settings shared by every environment."""
import os
from datetime import timedelta


class BaseConfig:
    """Base configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    AUTO_CREATE_TABLES = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=2)
    JWT_ALGORITHM = 'HS256'

    # CORS
    CORS_ORIGINS = ["http://localhost:*", "http://127.0.0.1:*"]

    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'
    RATELIMIT_DEFAULT = "1000 per day;200 per hour"
    RATELIMIT_HEADERS_ENABLED = True
    # Route limits are keyed per authenticated user (see rate_limit_key)
    ATTENDANCE_MARK_RATE_LIMIT = "30 per minute"
    SESSION_CREATE_RATE_LIMIT = "30 per hour"
    PROXY_ANALYSIS_RATE_LIMIT = "30 per minute"

    # Number of reverse proxies whose X-Forwarded-For is trusted (0 = none)
    PROXY_FIX_X_FOR = int(os.environ.get('PROXY_FIX_X_FOR', 0))

    # Rotating QR tokens
    QR_ROTATION_DEFAULT_SECONDS = 30
    QR_ROTATION_MIN_SECONDS = 10
    QR_ROTATION_MAX_SECONDS = 300
    # Twice the fastest rotation rate, per display
    QR_GENERATE_RATE_LIMIT = f"{2 * 3600 // QR_ROTATION_MIN_SECONDS} per hour"
    # Windows accepted before the current one; display and verification
    # clocks are assumed to agree to within this many rotations.
    QR_TOKEN_TOLERANCE_WINDOWS = 1
    QR_RENDER_IMAGE = True

    # Sessions
    SESSION_WINDOW_DEFAULT_MINUTES = 15
    SESSION_WINDOW_MIN_MINUTES = 1
    SESSION_WINDOW_MAX_MINUTES = 240
    DEFAULT_CLASSROOM_RADIUS_METERS = 50

    # Proxy attempt logging and analysis
    PROXY_LOG_ASYNC = True
    PROXY_LOG_WORKERS = 2
    PROXY_ANALYSIS_MAX_ROWS = 500
    PROXY_TOP_REASONS = 10
    PROXY_HIGH_FREQUENCY_THRESHOLD = 5
    PROXY_MULTIPLE_DEVICES_THRESHOLD = 3
    PROXY_IP_SHARING_THRESHOLD = 3
    PROXY_DEVICE_SHARING_THRESHOLD = 2

    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
