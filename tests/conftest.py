"""Global test fixtures."""

import os

# Set JWT secrets before any test modules import Config
# This must happen at module load time, not in a fixture
os.environ.setdefault("HSM_AUTH__JWT__SECRET", "test-secret-for-unit-tests-min-32")
os.environ.setdefault("HSM_AUTH__JWT__REFRESH_SECRET", "test-refresh-secret-for-unit-tests")
os.environ.setdefault("HSM_DATABASE__AUTO_MIGRATE", "false")
