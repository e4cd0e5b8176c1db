from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API Configuration
    api_v1_prefix: str = Field(default="/api/v1")
    api_title: str = Field(default="stepflow")
    api_version: str = Field(default="0.1.0")
    log_level: str = Field(default="INFO")

    environment: str = Field(default="development")

    # Registry behaviour for commands addressed to an id that was never
    # created (or already destroyed): drop silently, or raise MachineNotFound.
    unknown_machine_policy: Literal["ignore", "raise"] = Field(default="ignore")

    # What a subscriber calling back into the machine that is broadcasting
    # to it gets: run the nested operation immediately, or ReentrantTransition.
    reentrancy: Literal["allow", "deny"] = Field(default="allow")

    @field_validator("unknown_machine_policy", "reentrancy", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


settings = Settings()
