"""
Pytest Configuration and Shared Fixtures.

- fast_settings: reconciliación sin esperas (backoff y polling a 0)
- cloud / registry: MockCloud en memoria detrás de un ProviderRegistry
- store: MemoryStateStore vacío
- reconciler: Reconciler listo con los anteriores
"""

from pathlib import Path

import pytest

from orbita.core.infra.contracts import ProviderRegistry
from orbita.core.reconciler import Reconciler
from orbita.core.runtime.settings import ReconcileSettings
from orbita.core.runtime.state import MemoryStateStore
from orbita.providers.mock import MockCloud

STACKS_DIR = Path(__file__).resolve().parents[1] / "stacks"


@pytest.fixture
def fast_settings() -> ReconcileSettings:
    """Settings sin esperas reales y con un solo worker (orden determinista)."""
    return ReconcileSettings(
        parallelism=1,
        max_attempts=3,
        backoff_initial=0,
        backoff_max=0,
        poll_interval=0,
        confirm_timeout=5,
        refresh=False,
    )


@pytest.fixture
def cloud() -> MockCloud:
    return MockCloud()


@pytest.fixture
def registry(cloud) -> ProviderRegistry:
    return ProviderRegistry(default=cloud)


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def reconciler(registry, store, fast_settings) -> Reconciler:
    return Reconciler(registry, store, fast_settings)


@pytest.fixture
def web_stack_path() -> Path:
    return STACKS_DIR / "web_environment.yaml"


@pytest.fixture
def small_stack() -> dict:
    """Red + security group + instancia que usa ambos."""
    return {
        "N1": {"kind": "Network", "attributes": {"cidr_block": "10.0.0.0/16"}},
        "SG": {
            "kind": "SecurityGroup",
            "attributes": {"network": "${N1}", "description": "web"},
        },
        "I1": {
            "kind": "Instance",
            "attributes": {
                "network": "${N1}",
                "image": "ami-1",
                "instance_type": "t2.micro",
                "security_groups": ["${SG}"],
            },
        },
    }
