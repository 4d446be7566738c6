"""Shared fixtures for data package tests.

This module provides:
- A DataPackConfig that stages bags under the test's tmp_path
- A fixed, timezone-aware PackageClock so Bagging-Date is predictable
- A deterministic blank node factory for relationship stores
- The two-member CSV package used throughout the bag and resource map tests
"""

import itertools
from datetime import datetime, timezone
from pathlib import Path

import pytest

from datapack.clock import PackageClock
from datapack.config import DataPackConfig
from datapack.member import Member
from datapack.package import DataPackage
from datapack.storage.memory import InMemoryRelationshipStore

DO1_CONTENT = b"1,2,3\n4,5,6"
DO2_CONTENT = b"7,8,9\n4,10,11"


@pytest.fixture
def config(tmp_path: Path) -> DataPackConfig:
    """Configuration that keeps all staging inside the test's tmp_path."""
    staging = tmp_path / "staging"
    staging.mkdir()
    return DataPackConfig(staging_dir=staging)


@pytest.fixture
def fixed_clock() -> PackageClock:
    return PackageClock(now=datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def counting_blank_nodes():
    """Blank node factory producing _:b1, _:b2, ... in call order."""
    counter = itertools.count(1)
    return lambda: f"_:b{next(counter)}"


@pytest.fixture
def relationship_store() -> InMemoryRelationshipStore:
    return InMemoryRelationshipStore()


@pytest.fixture
def package(config: DataPackConfig) -> DataPackage:
    return DataPackage(config=config)


@pytest.fixture
def csv_package(config: DataPackConfig) -> DataPackage:
    """Two in-memory CSV members and a self-derivation of do2."""
    pkg = DataPackage(config=config)
    pkg.add_member(Member.from_bytes("do1", DO1_CONTENT))
    pkg.add_member(Member.from_bytes("do2", DO2_CONTENT))
    pkg.record_derivation("do2", ["do2"])
    return pkg
