"""
Threshold value objects for risk classification and health scoring.

Thresholds are configuration, not business meaning: the defaults mirror
the potline's operating envelope but every service accepts its own copy.
"""

from typing import Optional

from pydantic import Field, model_validator

from models.base import FrozenSchema


# Tiers the scorer shares with the classifier
SHARED_THRESHOLDS = (
    "fe_critical",
    "fe_moderate",
    "si_critical",
    "si_moderate",
    "temp_normal_min",
    "temp_normal_max",
)


class RiskThresholds(FrozenSchema):
    """Tier thresholds used by the metrics classifier."""

    fe_critical: float = Field(default=0.18, gt=0, description="Fe fraction for CRITICAL")
    fe_moderate: float = Field(default=0.10, gt=0, description="Fe fraction for MODERATE")
    si_critical: float = Field(default=0.07, gt=0, description="Si fraction for CRITICAL")
    si_moderate: float = Field(default=0.05, gt=0, description="Si fraction for MODERATE")

    # Normal operating bands (outside = HIGH)
    temp_normal_min: float = Field(default=960.0, description="Lowest normal bath temperature (°C)")
    temp_normal_max: float = Field(default=975.0, description="Highest normal bath temperature (°C)")
    molar_ratio_min: float = Field(default=2.2, ge=0, description="Lowest normal molar ratio")
    molar_ratio_max: float = Field(default=2.8, ge=0, description="Highest normal molar ratio")

    @model_validator(mode="after")
    def check_ordering(self) -> "RiskThresholds":
        if self.fe_moderate > self.fe_critical:
            raise ValueError("fe_moderate must not exceed fe_critical")
        if self.si_moderate > self.si_critical:
            raise ValueError("si_moderate must not exceed si_critical")
        if self.temp_normal_min > self.temp_normal_max:
            raise ValueError("temp_normal_min must not exceed temp_normal_max")
        if self.molar_ratio_min > self.molar_ratio_max:
            raise ValueError("molar_ratio_min must not exceed molar_ratio_max")
        return self


class ScoreThresholds(FrozenSchema):
    """
    Deduction tiers used by the health scorer.

    Iron and silicon reuse the classifier's critical/moderate values and
    add a lower "watch" tier so the score moves before the risk level does.
    Build it with from_risk() so the shared tiers cannot drift apart.
    """

    fe_critical: float = Field(default=0.18, gt=0)
    fe_moderate: float = Field(default=0.10, gt=0)
    fe_watch: float = Field(default=0.08, gt=0)
    si_critical: float = Field(default=0.07, gt=0)
    si_moderate: float = Field(default=0.05, gt=0)
    si_watch: float = Field(default=0.04, gt=0)

    temp_normal_min: float = Field(default=960.0)
    temp_normal_max: float = Field(default=975.0)
    temp_critical_min: float = Field(default=950.0)
    temp_critical_max: float = Field(default=985.0)

    fe_slope_warning: float = Field(default=0.002, description="Rising Fe per day")
    fe_slope_critical: float = Field(default=0.005, description="Rising Fe per day")
    si_slope_warning: float = Field(default=0.001, description="Rising Si per day")
    si_slope_critical: float = Field(default=0.003, description="Rising Si per day")

    ae_frequency_moderate: float = Field(default=1, ge=0, description="Anode effects per day")
    ae_frequency_critical: float = Field(default=3, ge=0, description="Anode effects per day")

    prediction_score_threshold: float = Field(
        default=60,
        ge=0,
        le=100,
        description="Scores below this raise a predictive alert"
    )

    @model_validator(mode="after")
    def check_ordering(self) -> "ScoreThresholds":
        if not self.fe_watch <= self.fe_moderate <= self.fe_critical:
            raise ValueError("Fe tiers must satisfy watch <= moderate <= critical")
        if not self.si_watch <= self.si_moderate <= self.si_critical:
            raise ValueError("Si tiers must satisfy watch <= moderate <= critical")
        if not self.temp_critical_min <= self.temp_normal_min <= self.temp_normal_max <= self.temp_critical_max:
            raise ValueError("Temperature bands must nest: critical band contains normal band")
        if self.fe_slope_warning > self.fe_slope_critical:
            raise ValueError("fe_slope_warning must not exceed fe_slope_critical")
        if self.si_slope_warning > self.si_slope_critical:
            raise ValueError("si_slope_warning must not exceed si_slope_critical")
        if self.ae_frequency_moderate > self.ae_frequency_critical:
            raise ValueError("ae_frequency_moderate must not exceed ae_frequency_critical")
        return self

    @classmethod
    def from_risk(cls, risk: RiskThresholds, **overrides) -> "ScoreThresholds":
        """
        Scorer thresholds whose shared tiers come from the classifier's.

        Watch tiers and the critical temperature band are pulled in when
        the classifier's tiers are tighter, so the ordering checks hold.
        """
        values = {name: cls.model_fields[name].default for name in cls.model_fields}
        values.update(overrides)
        values.update({name: getattr(risk, name) for name in SHARED_THRESHOLDS})

        values["fe_watch"] = min(values["fe_watch"], risk.fe_moderate)
        values["si_watch"] = min(values["si_watch"], risk.si_moderate)
        values["temp_critical_min"] = min(values["temp_critical_min"], risk.temp_normal_min)
        values["temp_critical_max"] = max(values["temp_critical_max"], risk.temp_normal_max)

        return cls(**values)

    def risk_thresholds(self, base: Optional[RiskThresholds] = None) -> RiskThresholds:
        """Classifier thresholds carrying these shared tiers; the rest from base."""
        values = (base or RiskThresholds()).model_dump()
        values.update({name: getattr(self, name) for name in SHARED_THRESHOLDS})
        return RiskThresholds(**values)

    def shares_tiers_with(self, risk: RiskThresholds) -> bool:
        return all(getattr(self, name) == getattr(risk, name) for name in SHARED_THRESHOLDS)
