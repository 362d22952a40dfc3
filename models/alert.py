"""
Alert models.

Alerts are derived from classified pots, one per violated dimension:
- Iron or silicon above the moderate threshold
- Bath temperature outside the normal band
- Anode effects
- Predicted deterioration (low score or rising iron)
"""

from enum import Enum

from pydantic import Field

from models.base import FrozenSchema


class AlertType(str, Enum):
    """Alert type enumeration."""

    FE_HIGH = "fe_high"
    SI_HIGH = "si_high"
    TEMP_HIGH = "temp_high"
    TEMP_LOW = "temp_low"
    AE_FREQUENCY = "ae_frequency"
    PREDICTION = "prediction"


class AlertSeverity(str, Enum):
    """Alert severity levels, mirroring the pot's risk level."""

    CRITICAL = "critical"  # Requires immediate action
    HIGH = "high"          # Should be addressed this shift
    MODERATE = "moderate"  # Monitor


ALERT_TITLES: dict[AlertType, str] = {
    AlertType.FE_HIGH: "High Fe",
    AlertType.SI_HIGH: "High Si",
    AlertType.TEMP_HIGH: "High Temperature",
    AlertType.TEMP_LOW: "Low Temperature",
    AlertType.AE_FREQUENCY: "Anode Effect Frequency",
    AlertType.PREDICTION: "Predicted Deterioration",
}


class Alert(FrozenSchema):
    """A single actionable alert for one pot."""

    id: str = Field(..., description="ALT-<pot id>-<type>")
    pot_id: str
    type: AlertType
    severity: AlertSeverity
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=1000)
