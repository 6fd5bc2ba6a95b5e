#!/usr/bin/env python
"""Shared pytest configuration for :data:`translatome` tests"""
import pytest

from translatome.util.services import exceptions


def pytest_configure(config):
    config.addinivalue_line("markers","unit: fast tests of single functions or classes")
    config.addinivalue_line("markers","functional: end-to-end tests of command-line scripts")


@pytest.fixture(autouse=True)
def reset_warning_registries():
    """Remove `onceperfamily` filters installed by scripts under test"""
    yield
    del exceptions.pl_filters[:]
    exceptions.pl_once_registry.clear()
