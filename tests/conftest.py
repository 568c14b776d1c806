import logging
from unittest.mock import patch

import pytest


@pytest.fixture(scope="session", autouse=True)
def offline_token_counting():
    """
    tiktoken may try to download encodings on first use. Tests run offline,
    so token counting is replaced by a whitespace split for the whole session.
    """
    patcher = patch(
        'catalog_sync.translation_driver.count_tokens',
        side_effect=lambda text, model_name='gpt-4o-mini': len(text.split())
    )
    patcher.start()
    try:
        yield
    finally:
        patcher.stop()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Remove handlers installed by load_app_config so they do not leak between tests."""
    yield
    logger = logging.getLogger("catalog_sync")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
