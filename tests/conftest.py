"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest

from config import configure_logging
from models.batch import CapacityConfig
from models.thresholds import RiskThresholds, ScoreThresholds
from services.allocation_service import AllocationService
from services.allocation_state import AllocationState
from services.planning_service import PlanningService
from tests.factories import PotFactory

configure_logging(level="WARNING")


# ===================
# THRESHOLDS / CAPACITY
# ===================

@pytest.fixture
def risk_thresholds() -> RiskThresholds:
    """Default classifier thresholds."""
    return RiskThresholds()


@pytest.fixture
def score_thresholds() -> ScoreThresholds:
    """Default scorer thresholds."""
    return ScoreThresholds()


@pytest.fixture
def capacity() -> CapacityConfig:
    """Default capacity: exactly 4 pots, 10.5 MT cap, 16 batches per shift."""
    return CapacityConfig()


# ===================
# ALLOCATION
# ===================

@pytest.fixture
def allocation_service(capacity) -> AllocationService:
    """Allocation engine over the default grade table."""
    return AllocationService(capacity=capacity)


@pytest.fixture
def planning_service(allocation_service) -> PlanningService:
    return PlanningService(allocation_service=allocation_service)


@pytest.fixture
def clean_pots() -> list:
    """
    Eight normal pots that fit every grade.

    Scores descend from P-01 (95) to P-08 (88).
    """
    return [
        PotFactory.create(id=f"P-{i:02d}", fe=0.05, si=0.03, ai_score=96 - i)
        for i in range(1, 9)
    ]


@pytest.fixture
def state(clean_pots) -> AllocationState:
    """Fresh allocation session over the clean pots."""
    return AllocationState(clean_pots)
