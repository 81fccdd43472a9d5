import os


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-prod')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    SITE_NAME = os.getenv('SITE_NAME', 'GullyEsports')

    # Database
    DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///portal.db')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Larger JSON bodies are refused with 413 before they are parsed
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    # Admin auth
    JWT_SECRET = os.getenv('JWT_SECRET', '')
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES_DAYS = int(os.getenv('JWT_EXPIRES_DAYS', '7'))
    PASSWORD_HASH_METHOD = os.getenv('PASSWORD_HASH_METHOD', 'scrypt')

    # Cross-origin frontend
    CORS_ORIGIN = os.getenv('CORS_ORIGIN', 'http://localhost:5173')
    BEHIND_PROXY = _env_flag('BEHIND_PROXY')

    # Email notifications
    SMTP_HOST = os.getenv('SMTP_HOST', 'smtp.gmail.com')
    SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
    SMTP_USE_TLS = _env_flag('SMTP_USE_TLS', 'true')
    SMTP_TIMEOUT = int(os.getenv('SMTP_TIMEOUT', '10'))
    EMAIL_USER = os.getenv('EMAIL_USER', '')
    EMAIL_PASS = os.getenv('EMAIL_PASS', '')
    EMAIL_TO = os.getenv('EMAIL_TO', '')
    EMAIL_VERIFY_ON_STARTUP = True
    NOTIFICATION_WORKERS = int(os.getenv('NOTIFICATION_WORKERS', '2'))

    # Rate limiting
    RATELIMIT_STORAGE_URL = os.getenv('RATELIMIT_STORAGE_URL', '')
    RATELIMIT_WINDOW_SECONDS = int(os.getenv('RATELIMIT_WINDOW_SECONDS', '900'))
    RATELIMIT_API_LIMIT = int(os.getenv('RATELIMIT_API_LIMIT', '100'))
    RATELIMIT_LOGIN_LIMIT = int(os.getenv('RATELIMIT_LOGIN_LIMIT', '5'))


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')
    JWT_SECRET = os.getenv('JWT_SECRET', 'dev-secret-change-me')


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET = 'test-secret'
    PASSWORD_HASH_METHOD = 'pbkdf2:sha256:1000'
    CORS_ORIGIN = 'http://localhost:5173'
    EMAIL_VERIFY_ON_STARTUP = False
    RATELIMIT_STORAGE_URL = ''
    RATELIMIT_API_LIMIT = 10000
    RATELIMIT_LOGIN_LIMIT = 10000


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
