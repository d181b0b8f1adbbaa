"""Unit test helpers shared across DAL tests."""

import pytest

from tests._support.fakes import FakeQueryTarget


@pytest.fixture
def fake_target_cls():
    return FakeQueryTarget
