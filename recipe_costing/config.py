from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Recipe Cost Calculator API"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    
    # Database
    DATABASE_URL: str = "sqlite:///./recipe_costs.db"
    
    # CORS
    ALLOWED_ORIGINS: str = "*"
    
    # API
    API_PREFIX: str = "/api"
    
    # Business rules
    TIMEZONE: str = "UTC"
    PRICE_STALE_DAYS: int = 30
    DEFAULT_PROFIT_MULTIPLIER: float = 3.0
    DEFAULT_PROFIT_MARGIN: float = 30.0
    
    @property
    def allowed_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
