import os
import warnings

# Keep the test run independent from a developer's env.local
os.environ.update(
    {
        "DEMO_MODE": "false",
        "STORE_BACKEND": "memory",
        "LOCK_BACKEND": "local",
        "EVENTS_BACKEND": "memory",
        "AUTH_JWT_SECRET": "test-jwt-secret-with-enough-length-for-hs256",
    }
)

warnings.filterwarnings("ignore", category=DeprecationWarning)

from tests.fixtures.backend_fixtures import *  # noqa: E402, F403
from tests.fixtures.live_class_fixtures import *  # noqa: E402, F403
