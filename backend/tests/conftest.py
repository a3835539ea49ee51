import os
import sys
from pathlib import Path

import pytest

# Keep test runs quiet and deterministic before settings import
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("SEED_SAMPLE_TREE", "false")

# Add the backend directory so `taxonomy` package imports resolve during tests
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.append(str(BACKEND_DIR))

from taxonomy.tree.workspace import TaxonomyWorkspace  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def workspace() -> TaxonomyWorkspace:
    return TaxonomyWorkspace()


@pytest.fixture
def sample(workspace: TaxonomyWorkspace) -> dict[str, str]:
    """Root -> Alpha -> (Beta, Gamma) plus a second sector, ids by name."""

    engine = workspace.engine
    root = engine.add(None, "Root")
    alpha = engine.add(root.id, "Alpha")
    beta = engine.add(alpha.id, "Beta")
    gamma = engine.add(alpha.id, "Gamma")
    other = engine.add(None, "Other")
    return {
        "Root": root.id,
        "Alpha": alpha.id,
        "Beta": beta.id,
        "Gamma": gamma.id,
        "Other": other.id,
    }
