"""Root conftest — keeps .env loading from leaking between tests.

Entry points export .env values into os.environ so child commands inherit
them; snapshot and restore the environment around every test.
"""

import os

import pytest


@pytest.fixture(autouse=True)
def _restore_environ():
    saved = dict(os.environ)
    yield
    os.environ.clear()
    os.environ.update(saved)
