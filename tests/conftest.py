"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory record store
- Scriptable registration provider and code retriever fakes
- Wired RegistrationService
"""

import pytest

from src.adapters.repository.memory import InMemoryRecordStore
from src.domain.registration import RegistrationService
from tests.fakes import FakeCodeRetriever, FakeProvider


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def code_retriever() -> FakeCodeRetriever:
    return FakeCodeRetriever()


@pytest.fixture
def service(
    store: InMemoryRecordStore, provider: FakeProvider, code_retriever: FakeCodeRetriever
) -> RegistrationService:
    return RegistrationService(store=store, provider=provider, code_retriever=code_retriever)
