"""
Pytest configuration for the test suite.

Adds the project root to sys.path so that ``from expiry_scan...`` and
``from config import ...`` work without installing the package.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest
from PIL import Image

# Add project root so ``expiry_scan`` and ``config`` imports work
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)


@pytest.fixture
def now():
    """Fixed extraction instant before every scenario date."""
    return datetime(2025, 6, 1, 12, 0)


@pytest.fixture
def label_image():
    """Plain white label photo."""
    return Image.new('RGB', (400, 200), 'white')
