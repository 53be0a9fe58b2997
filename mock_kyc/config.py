import os
from functools import lru_cache
from pydantic import BaseModel, Field


class Settings(BaseModel):
    # Simulated provider latency window in milliseconds, [min, max)
    KYC_MIN_LATENCY_MS: float = Field(default_factory=lambda: float(os.getenv("KYC_MIN_LATENCY_MS", "1000")))
    KYC_MAX_LATENCY_MS: float = Field(default_factory=lambda: float(os.getenv("KYC_MAX_LATENCY_MS", "3000")))

    # How long the application service waits on the provider
    KYC_TIMEOUT_SECONDS: float = Field(default_factory=lambda: float(os.getenv("KYC_TIMEOUT_SECONDS", "10")))

    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def validate_latency(self) -> None:
        if self.KYC_MIN_LATENCY_MS < 0:
            raise ValueError("KYC_MIN_LATENCY_MS must not be negative")
        if self.KYC_MAX_LATENCY_MS <= self.KYC_MIN_LATENCY_MS:
            raise ValueError("KYC_MAX_LATENCY_MS must be greater than KYC_MIN_LATENCY_MS")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.validate_latency()
    return settings
