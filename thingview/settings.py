from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    GATEWAY_URL: str = "http://gateway.local:8080"
    GATEWAY_TOKEN: str
    LOG_LEVEL: str = "INFO"
    REQUEST_TIMEOUT: float = 15.0
    RECONNECT_DELAY: float = 2.0
    RECONNECT_MAX_DELAY: float = 60.0
    RESYNC_INTERVAL: float = 300.0
    RENDER_MODE: str = "htmlDetail"

settings = Settings()
