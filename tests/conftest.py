import os
import sys
from pathlib import Path

# Keep tests independent from a developer's env.local / media server
os.environ.update(
    {
        "MEDIA_BACKEND": "openvidu",
        "OPENVIDU_URL": "https://openvidu.test:4443",
        "OPENVIDU_SECRET": "test-secret",
        "USER_CREDENTIALS": "PASSWORD",
        "IP_CAMERAS": "{}",
    }
)

# Ensure the project root is on sys.path so `app` packages resolve
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

from tests.fixtures.media_fixtures import *  # noqa: E402, F403
