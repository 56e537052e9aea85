from pathlib import Path

import pytest

from mindflow.catalog import FlowCatalog

FLOWS_DIR = Path(__file__).resolve().parent.parent / "flows"


@pytest.fixture(scope="session")
def catalog():
    """Load the shipped flow definitions once for the entire test session."""
    c = FlowCatalog(FLOWS_DIR)
    c.load()
    return c
