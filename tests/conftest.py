import pathlib
import sys
from typing import Any, Callable

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from chatbridge.config import Settings, get_settings  # noqa: E402


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build isolated settings that ignore the developer's environment and `.env`."""

    def _factory(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "tavily_api_key": None,
            "mem0_api_key": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)  # pyright: ignore[reportCallIssue]

    return _factory


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
