"""
CleanSong Relay Configuration
Supports AWS Parameter Store for production secrets
"""
import os
from functools import lru_cache

import boto3


def get_parameter(name: str, default: str = "") -> str:
    """Get parameter from environment or AWS Parameter Store"""
    # Environment variable takes precedence
    env_key = name.upper().replace("-", "_").replace("/", "_")
    if env_key in os.environ:
        return os.environ[env_key]

    if os.environ.get("USE_PARAMETER_STORE"):
        ssm = boto3.client("ssm", region_name=os.environ.get("AWS_REGION", "us-west-2"))
        path = os.environ.get("PARAMETER_STORE_PATH", "/cleansong/prod/")
        try:
            response = ssm.get_parameter(Name=f"{path}{name}", WithDecryption=True)
        except ssm.exceptions.ParameterNotFound:
            return default
        return response["Parameter"]["Value"]

    return default


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-in-production")

    # Audio arrives base64-encoded inside JSON, so the body is ~4/3 of the file
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024  # 50MB
    STATIC_FOLDER = os.environ.get("STATIC_FOLDER", "public")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    ERROR_DETAILS_LIMIT = 2000

    # FreeConvert
    FREECONVERT_API_KEY = os.environ.get("FREECONVERT_API_KEY", "")
    FREECONVERT_BASE_URL = os.environ.get("FREECONVERT_BASE_URL", "https://api.freeconvert.com/v1")
    FREECONVERT_POLL_INTERVAL = float(os.environ.get("FREECONVERT_POLL_INTERVAL", "3"))
    FREECONVERT_MAX_POLLS = int(os.environ.get("FREECONVERT_MAX_POLLS", "30"))
    FREECONVERT_TARGET_PERCENTAGE = 40
    FREECONVERT_OUTPUT_FORMAT = "mp3"
    FREECONVERT_TIMEOUT = 60

    # Hugging Face Space
    HF_TOKEN = os.environ.get("HF_TOKEN", "")
    SPACE_ID = os.environ.get("SPACE_ID", "CleanSong/Lyric-Cleaner")
    SPACE_API_NAME = os.environ.get("SPACE_API_NAME", "/process_song")

    # App Version
    APP_VERSION = os.environ.get("APP_VERSION", "2026.10")
    BUILD_TIME = os.environ.get("BUILD_TIME", "")
    GIT_COMMIT = os.environ.get("GIT_COMMIT", "")


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Override with Parameter Store in production
    SECRET_KEY = get_parameter("secret-key", Config.SECRET_KEY)
    FREECONVERT_API_KEY = get_parameter("freeconvert-api-key", Config.FREECONVERT_API_KEY)
    HF_TOKEN = get_parameter("hf-token", Config.HF_TOKEN)


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = True
    TESTING = True
    FREECONVERT_API_KEY = "test-freeconvert-key"
    FREECONVERT_POLL_INTERVAL = 0
    HF_TOKEN = ""


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


@lru_cache()
def get_config(env: str = None):
    """Get configuration by environment name"""
    env = env or os.environ.get("FLASK_ENV", "development")
    return config.get(env, DevelopmentConfig)
