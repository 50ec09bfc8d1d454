import pytest

from mtb_kinematics.analysis import run_kinematic_analysis
from mtb_kinematics.model import default_geometry


@pytest.fixture
def geometry():
    return default_geometry()


@pytest.fixture(scope="session")
def default_results():
    return run_kinematic_analysis(default_geometry())
