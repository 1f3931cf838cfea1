from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "bayescompare"

    # Zero/one posterior predictive check
    PPC_REPLICATIONS: int = 218
    PPC_CHUNK_SIZE: int = 10_000

    # Sampling
    DEFAULT_CONFIDENCE_INTERVAL: tuple[float, float] = (0.025, 0.975)
    RANDOM_SEED: Optional[int] = None

    LOG_LEVEL: str = "WARNING"

    model_config = {
        "env_prefix": "BAYESCOMPARE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
