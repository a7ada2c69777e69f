"""Shared pytest configuration for storeai_core tests."""


def pytest_configure(config):
    """Run async test functions under pytest-asyncio without per-test markers."""
    config.option.asyncio_mode = "auto"
