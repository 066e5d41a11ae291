from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
	app_env: str = Field(default="development")
	database_url: str = Field(default="sqlite:///./physiocare.db")

	# serialize appointments / exercise logs to the key-value store after each write
	persist_snapshots: bool = Field(default=True)
	appointments_blob_key: str = Field(default="saved_appointments")
	exercise_logs_blob_key: str = Field(default="exercise_logs")

	default_summary: str = Field(default="Initial Assessment")

	class Config:
		env_file = ".env"
		env_file_encoding = "utf-8"

settings = Settings()
