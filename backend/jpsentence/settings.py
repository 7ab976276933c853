from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Auth configuration
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	access_token_expire_minutes: int = Field(default=24 * 60, validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES")

	# Grading policy; a test attempt passes when its score is >= this value
	pass_threshold: int = Field(default=90, ge=0, le=100, validation_alias="PASS_THRESHOLD")
	default_test_count: int = Field(default=5, ge=1, validation_alias="DEFAULT_TEST_COUNT")

	# HTTP
	cors_origins: str = Field(default="*", validation_alias="CORS_ORIGINS")
	debug_endpoints: bool = Field(default=False, validation_alias="DEBUG_ENDPOINTS")

	# Logging (no LOG_DIR means console only)
	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
	log_dir: str | None = Field(default=None, validation_alias="LOG_DIR")
	log_retention_days: int = Field(default=14, validation_alias="LOG_RETENTION_DAYS")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
