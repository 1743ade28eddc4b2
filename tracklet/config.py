from dotenv import load_dotenv
load_dotenv()  # Load environment variables from .env file

import os


def _flag(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration class."""
    APP_NAME = os.getenv("APP_NAME", "TrackLet Stock")

    SECRET_KEY = os.getenv("SECRET_KEY", "your_default_secret_key")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    DEBUG = _flag("FLASK_DEBUG", "False")
    TESTING = False

    MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017/tracklet")
    MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "tracklet")
    # Multi-document transactions need a replica set; standalone servers fall back to compensation
    MONGO_TRANSACTIONS = _flag("MONGO_TRANSACTIONS", "True")
    MONGO_SETUP_INDEXES = _flag("MONGO_SETUP_INDEXES", "True")

    # ========================================
    # STOCK LOCKING
    # ========================================
    REDIS_URL = os.getenv("REDIS_URL")
    STOCK_LOCK_TIMEOUT = float(os.getenv("STOCK_LOCK_TIMEOUT", 10))
    STOCK_LOCK_WAIT = float(os.getenv("STOCK_LOCK_WAIT", 5))

    # ========================================
    # STATS & RATES
    # ========================================
    STATS_TIMEZONE = os.getenv("STATS_TIMEZONE", "UTC")
    DEFAULT_RATE_PER_KG = os.getenv("DEFAULT_RATE_PER_KG", "260.00")

    RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
    RATELIMIT_ENABLED = True
    ALLOWED_ORIGINS = [o for o in os.getenv("ALLOWED_ORIGINS", "*").split(",") if o]


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    MONGO_TRANSACTIONS = _flag("MONGO_TRANSACTIONS", "False")


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SECRET_KEY = "tracklet-test-secret"
    MONGO_URI = os.getenv("TEST_MONGO_URI", "mongodb://localhost:27017/tracklet_test")
    MONGO_DB_NAME = "tracklet_test"
    MONGO_TRANSACTIONS = False
    MONGO_SETUP_INDEXES = False
    REDIS_URL = None
    STOCK_LOCK_WAIT = 2
    RATELIMIT_ENABLED = False


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    MONGO_URI = os.getenv("PROD_MONGO_URI", Config.MONGO_URI)


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def load_config(app, config_name=None):
    load_dotenv()
    config_name = config_name or os.getenv("APP_ENV", "development")
    app.config.from_object(config_by_name.get(config_name, DevelopmentConfig))

    # Flask-Smorest keys
    app.config["API_TITLE"] = "TrackLet Stock API"
    app.config["API_VERSION"] = "v1"
    app.config["OPENAPI_VERSION"] = "3.0.3"
    app.config["OPENAPI_URL_PREFIX"] = "/api"
    app.config["OPENAPI_JSON_PATH"] = "openapi.json"
    app.config["OPENAPI_SWAGGER_UI_PATH"] = "/docs"
    app.config["OPENAPI_SWAGGER_UI_URL"] = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"

    app.config["RATELIMIT_STORAGE_URI"] = app.config["RATE_LIMIT_STORAGE_URI"]
    return config_name
