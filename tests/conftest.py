import anyio
import pytest

from taskgraph import Orchestrator, Resource


class RecordingResource(Resource):
    def __init__(self, provider: "RecordingProvider", task_name: str) -> None:
        self.provider = provider
        self.task_name = task_name

    async def commit(self) -> None:
        if self.task_name in self.provider.fail_commit:
            raise RuntimeError(f"commit of {self.task_name} refused")

        self.provider.committed[self.task_name] = anyio.current_time()

    async def rollback(self) -> None:
        if self.task_name in self.provider.fail_rollback:
            raise RuntimeError(f"rollback of {self.task_name} refused")

        self.provider.rolled_back.append(self.task_name)


class RecordingProvider:
    """Hands out one resource per task and records how each one was closed."""

    def __init__(self) -> None:
        self.opened: list[str] = []
        self.committed: dict[str, float] = {}
        self.rolled_back: list[str] = []
        self.fail_commit: set[str] = set()
        self.fail_rollback: set[str] = set()

    async def __call__(self, context) -> RecordingResource:
        self.opened.append(context.task_name)
        return RecordingResource(self, context.task_name)


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def orchestrator(provider):
    return Orchestrator(provider=provider, retry_backoff_unit=0.001)


@pytest.fixture(
    params=[
        pytest.param(("asyncio", {"use_uvloop": False}), id="asyncio"),
        pytest.param(
            ("trio", {"restrict_keyboard_interrupt_to_checkpoints": True}), id="trio"
        ),
    ],
    scope="session",
)
def anyio_backend(request):
    return request.param
