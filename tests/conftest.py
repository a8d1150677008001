"""
Pytest configuration and fixtures for Peezy Engine tests.
"""

import os
from datetime import date

import pytest

# Set test environment before importing peezy modules
os.environ["PEEZY_ENV"] = "development"
os.environ.pop("PEEZY_TASK_CATALOG_PATH", None)
os.environ.pop("PEEZY_VENDOR_CATALOG_PATH", None)

from peezy.eligibility.catalog import CatalogMatcher, Definition


@pytest.fixture
def pet_catalog():
    """Core PET_OPTIONS task plus its SETUP_VET sub-task."""
    return [
        Definition(id="PET_OPTIONS", conditions={"AnyPets": ["Yes"]}, title="Tell us about your pets"),
        Definition(
            id="SETUP_VET",
            conditions={"AnyPets": ["Yes"], "MoveDistance": ["Long Distance", "Cross-Country"]},
            title="Find a vet",
            is_sub_task=True,
            parent_task="PET_OPTIONS",
        ),
    ]


@pytest.fixture
def pet_matcher(pet_catalog):
    return CatalogMatcher(pet_catalog)


@pytest.fixture
def core_answers():
    """A typical finished assessment (already derived)."""
    return {
        "userName": "Sam",
        "currentRentOrOwn": "Rent",
        "currentDwellingType": "Apartment",
        "currentFloorAccess": "Elevator",
        "hasStorage": "No",
        "hasVehicles": "Yes",
        "hireMovers": "Yes",
        "hirePackers": "No",
        "hireCleaners": "No",
        "AnyPets": "Yes",
        "childrenInSchool": "No",
        "childrenInDaycare": "No",
        "moveDistance": "Long Distance",
        "isInterstate": "Yes",
        "fitnessWellness": ["Yoga"],
    }


@pytest.fixture
def today():
    return date(2026, 1, 1)


@pytest.fixture
def write_yaml(tmp_path):
    """Write data to a YAML file under tmp_path and return the path."""
    import yaml

    def _write(name, data):
        path = tmp_path / name
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
