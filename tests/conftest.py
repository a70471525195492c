"""Shared pytest configuration"""
import os

# config.settings is built at import time; give it placeholder connection
# values so tests never need a real .env
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

import pytest
from tests.fixtures.tubuyaki_fixtures import InMemoryDatabase


@pytest.fixture
def store():
    """Empty in-memory record store"""
    return InMemoryDatabase()
