"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import sharegroup...' and
'import actions...' work, and isolates every test from GROUP_SHARE_* variables
in the real environment and from the cached process-wide configuration.
"""
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from sharegroup.config.settings import env_var_name, reset_share_group_config
from sharegroup.config.share_group_config import CONFIG_DEF


@pytest.fixture(autouse=True)
def clean_share_group_env(monkeypatch):
    for key in CONFIG_DEF.names():
        monkeypatch.delenv(env_var_name(key), raising=False)
    reset_share_group_config()
    yield
    reset_share_group_config()
