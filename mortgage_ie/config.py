from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    debug: bool = False
    log_level: str = "INFO"
    cors_allow_origins: list[str] = ["*"]

    # Simulation bounds: 35 years is the longest term Irish lenders offer
    max_term_months: int = 420

    # Fee estimates (user-editable per request)
    legal_fees: float = 4000.0
    remortgage_legal_fees: float = 1350.0

    # Residential stamp duty (Government changes these)
    # Upper band limit -> rate applied to the slice of price within the band
    stamp_duty_bands: dict[int, float] = {
        1_000_000: 0.01,
        1_500_000: 0.02,
    }
    stamp_duty_top_rate: float = 0.06


settings = Settings()
