"""API test specific fixtures."""

import pytest
from fastapi.testclient import TestClient

from spirit_tower.main import app


@pytest.fixture
def test_client():
    """Create FastAPI TestClient for API endpoint testing."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def character_payload(unique_name):
    """Wire payload for a valid Sentinel sheet."""
    return {
        "name": unique_name,
        "role": "Sentinel",
        "mentalRank": "A",
        "physicalRank": "S",
        "gold": 8800,
        "ability": "Perception",
        "spiritName": "Gray Wolf",
        "spiritType": "Animal",
    }
