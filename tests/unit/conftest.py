"""Unit test configuration.

Unit tests run without network access or a Redis server; HTTP calls are
mocked with respx and Redis with unittest.mock.
"""

import pytest


pytestmark = pytest.mark.unit
