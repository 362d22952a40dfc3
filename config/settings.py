"""
Planner settings loaded from environment variables.

Uses pydantic-settings for validation and type safety. Services receive
the value objects built here (thresholds, capacity) and never read
environment variables themselves.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from exceptions import InvalidCapacityConfigError
from models.batch import CapacityConfig
from models.thresholds import RiskThresholds, ScoreThresholds


class Settings(BaseSettings):
    """
    Planner settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on first access.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # RISK THRESHOLDS
    # ===================
    fe_critical: float = Field(
        default=0.18,
        gt=0,
        le=1,
        description="Fe fraction at or above which a pot is CRITICAL"
    )
    fe_moderate: float = Field(
        default=0.10,
        gt=0,
        le=1,
        description="Fe fraction at or above which a pot is MODERATE"
    )
    si_critical: float = Field(
        default=0.07,
        gt=0,
        le=1,
        description="Si fraction at or above which a pot is CRITICAL"
    )
    si_moderate: float = Field(
        default=0.05,
        gt=0,
        le=1,
        description="Si fraction at or above which a pot is MODERATE"
    )
    temp_normal_min: float = Field(
        default=960.0,
        ge=800,
        le=1100,
        description="Lower bound of the normal bath temperature band (°C)"
    )
    temp_normal_max: float = Field(
        default=975.0,
        ge=800,
        le=1100,
        description="Upper bound of the normal bath temperature band (°C)"
    )
    molar_ratio_min: float = Field(
        default=2.2,
        ge=0,
        le=5,
        description="Lower bound of the normal molar ratio band"
    )
    molar_ratio_max: float = Field(
        default=2.8,
        ge=0,
        le=5,
        description="Upper bound of the normal molar ratio band"
    )

    # ===================
    # HEALTH SCORE THRESHOLDS
    # ===================
    fe_watch: float = Field(
        default=0.08,
        gt=0,
        le=1,
        description="Fe fraction that starts costing score points"
    )
    si_watch: float = Field(
        default=0.04,
        gt=0,
        le=1,
        description="Si fraction that starts costing score points"
    )
    temp_critical_min: float = Field(
        default=950.0,
        ge=800,
        le=1100,
        description="Below this the temperature deduction is maximal (°C)"
    )
    temp_critical_max: float = Field(
        default=985.0,
        ge=800,
        le=1100,
        description="Above this the temperature deduction is maximal (°C)"
    )
    fe_slope_warning: float = Field(default=0.002, description="Rising Fe per day (warning)")
    fe_slope_critical: float = Field(default=0.005, description="Rising Fe per day (critical)")
    si_slope_warning: float = Field(default=0.001, description="Rising Si per day (warning)")
    si_slope_critical: float = Field(default=0.003, description="Rising Si per day (critical)")
    ae_frequency_moderate: float = Field(
        default=1,
        ge=0,
        le=20,
        description="Anode effects per day that cost score points"
    )
    ae_frequency_critical: float = Field(
        default=3,
        ge=0,
        le=20,
        description="Anode effects per day for the maximal deduction"
    )
    prediction_score_threshold: float = Field(
        default=60,
        ge=0,
        le=100,
        description="Scores below this raise a predictive alert"
    )

    # ===================
    # BATCH CAPACITY
    # ===================
    pots_per_batch: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Target pots per batch (exact count unless a range is set)"
    )
    min_pots_per_batch: Optional[int] = Field(
        None,
        ge=1,
        le=20,
        description="Range mode lower bound"
    )
    max_pots_per_batch: Optional[int] = Field(
        None,
        ge=1,
        le=20,
        description="Range mode upper bound"
    )
    max_batches_per_shift: int = Field(
        default=16,
        ge=1,
        le=200,
        description="Maximum batches planned per shift"
    )
    max_weight_per_batch: float = Field(
        default=10.5,
        gt=0,
        le=50,
        description="Maximum metal per batch (MT)"
    )
    min_weight_per_batch: Optional[float] = Field(
        None,
        ge=0,
        le=50,
        description="Optional minimum metal per batch (MT)"
    )
    avg_weight_per_pot: float = Field(
        default=2.5,
        gt=0,
        le=10,
        description="Metal assumed for a pot with no weight (MT)"
    )
    avg_weight_per_batch: float = Field(
        default=10.0,
        gt=0,
        le=50,
        description="Metal per batch used to size product requests (MT)"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    def risk_thresholds(self) -> RiskThresholds:
        """Classifier thresholds from current settings."""
        return RiskThresholds(
            fe_critical=self.fe_critical,
            fe_moderate=self.fe_moderate,
            si_critical=self.si_critical,
            si_moderate=self.si_moderate,
            temp_normal_min=self.temp_normal_min,
            temp_normal_max=self.temp_normal_max,
            molar_ratio_min=self.molar_ratio_min,
            molar_ratio_max=self.molar_ratio_max,
        )

    def score_thresholds(self, risk: Optional[RiskThresholds] = None) -> ScoreThresholds:
        """
        Health scorer thresholds from current settings.

        Fe/Si tiers and the normal temperature band come from the given
        classifier thresholds, or from risk_thresholds() when omitted.
        """
        return ScoreThresholds.from_risk(
            risk or self.risk_thresholds(),
            fe_watch=self.fe_watch,
            si_watch=self.si_watch,
            temp_critical_min=self.temp_critical_min,
            temp_critical_max=self.temp_critical_max,
            fe_slope_warning=self.fe_slope_warning,
            fe_slope_critical=self.fe_slope_critical,
            si_slope_warning=self.si_slope_warning,
            si_slope_critical=self.si_slope_critical,
            ae_frequency_moderate=self.ae_frequency_moderate,
            ae_frequency_critical=self.ae_frequency_critical,
            prediction_score_threshold=self.prediction_score_threshold,
        )

    def capacity_config(self) -> CapacityConfig:
        """
        Batch capacity from current settings.

        Raises:
            InvalidCapacityConfigError: If count or weight bounds are inconsistent
        """
        try:
            return CapacityConfig(
                pots_per_batch=self.pots_per_batch,
                min_pots_per_batch=self.min_pots_per_batch,
                max_pots_per_batch=self.max_pots_per_batch,
                max_batches_per_shift=self.max_batches_per_shift,
                max_weight_per_batch=self.max_weight_per_batch,
                min_weight_per_batch=self.min_weight_per_batch,
                avg_weight_per_pot=self.avg_weight_per_pot,
                avg_weight_per_batch=self.avg_weight_per_batch,
            )
        except PydanticValidationError as e:
            raise InvalidCapacityConfigError(
                "Batch capacity settings are inconsistent",
                details={"errors": [err["msg"] for err in e.errors()]}
            )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Planner settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
