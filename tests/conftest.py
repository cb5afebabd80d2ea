import copy

import pytest

from config import Settings, SimulationConfig

SAMPLE = {
    "nodes": [
        {"id": 1, "state": "TN", "city": "Chennai", "region": "North", "vendor": "V1", "type": "router"},
        {"id": 2, "state": "TN", "city": "Chennai", "region": "South", "vendor": "V2", "type": "switch"},
        {"id": 3, "state": "TN", "city": "Madurai", "region": "East", "vendor": "V1", "type": "router"},
        {"id": 4, "state": "MA", "city": "Boston", "region": "Back Bay", "vendor": "V2", "type": "switch"},
        {"id": 5, "state": "MA", "city": "Cambridge", "region": "Central", "vendor": "V1", "type": "router"},
    ],
    "links": [
        {"source": 1, "target": 2},
        {"source": 1, "target": 3},
        {"source": 2, "target": 4},
        {"source": 4, "target": 5},
        {"source": 3, "target": 5},
        {"source": 1, "target": 4},
    ],
    "state": ["TN", "MA"],
    "vendor": ["V1", "V2"],
    "type": ["router", "switch"],
}


@pytest.fixture
def raw():
    return copy.deepcopy(SAMPLE)


@pytest.fixture
def settings():
    return Settings(simulation=SimulationConfig(seed=7))
