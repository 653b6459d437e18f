from pydantic_settings import BaseSettings
from pathlib import Path

# Get the repository root directory (parent of the package directory)
REPO_ROOT = Path(__file__).parent.parent.absolute()

class Settings(BaseSettings):
    """Application settings."""
    
    # API settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_RELOAD: bool = True
    CORS_ALLOW_ORIGINS: str = "*"  # comma separated
    
    # Version and environment
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    
    # Storage settings
    STORAGE_TYPE: str = "filesystem"  # "filesystem" or "s3"
    FRAGMENTS_STORAGE_DIR: str = str(REPO_ROOT / "storage" / "fragments")
    FAIL_FAST_ON_INIT_ERROR: bool = True
    
    # S3 settings (only used if STORAGE_TYPE = "s3")
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    S3_BUCKET: str = "fragments"
    S3_PREFIX: str = "fragments"
    
    # Identifier settings
    ID_STRATEGY: str = "uuid4"  # "uuid4" or "hex"
    PREVENT_ID_OVERWRITE: bool = False
    ID_MAX_ATTEMPTS: int = 5
    
    # Conversion engine settings
    ENGINE: str = "groups"  # builtin name or "package.module:attribute"
    ENGINE_TIMEOUT_SECONDS: float = 60.0
    FRAGMENT_SIZE: int = 64 * 1024
    
    class Config:
        env_file = ".env"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ALLOW_ORIGINS.split(",") if origin.strip()]

settings = Settings()
