from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    FINNHUB_API_KEY: str = ""
    NEWSAPI_API_KEY: str = ""
    MARKETAUX_API_KEY: str = ""
    ALPHAVANTAGE_API_KEY: str = ""
    REDDIT_USER_AGENT: str = "headline-feed/0.1"
    PORT: int = 8000

settings = Settings(_env_file=".env", _env_file_encoding="utf-8")
