"""
Unit tests for the ChainRunner class.

This module contains tests for the ChainRunner class, ensuring that it threads
the variable store through a chain, stops the monitoring chain at the first
failure, always runs the whole cleanup chain and reports every outcome.

The tests follow the Arrange-Act-Assert (AAA) pattern and use a scripted
executor in place of the network.
"""

import time
from datetime import timedelta
from typing import Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from synthetic_monitor.contracts import RequestExecutor, ResultProcessor
from synthetic_monitor.domain import (
    HttpMethod,
    MonitorDefinition,
    Phase,
    RequestOutcome,
    RequestSpec,
    Variable,
    VariableOrigin,
    VariableStore,
)
from synthetic_monitor.errors import (
    ExecutionError,
    ExtractionError,
    TransportError,
    UnexpectedStatusError,
)
from synthetic_monitor.runner import RANDOM_VARIABLE_NAME, ChainRunner, seed_store


def make_spec(name: str) -> RequestSpec:
    return RequestSpec(
        name=name,
        method=HttpMethod.GET,
        url=f"https://example.com/{name}",
        headers={},
        body="",
        query_params={},
        expected_response_codes=frozenset({200}),
        timeout="1s",
        variables_from_response=(),
    )


class ScriptedExecutor(RequestExecutor):
    """
    An executor that returns scripted results and records what each request saw.

    A request listed in 'failures' fails with the given error, a request listed
    in 'crashes' makes execute() itself raise; every other request extracts
    one variable named '<request>_var'.
    """

    def __init__(
        self,
        failures: Optional[Dict[str, Exception]] = None,
        crashes: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.failures: Dict[str, Exception] = failures or {}
        self.crashes: Dict[str, Exception] = crashes or {}
        self.calls: List[Tuple[str, Phase, Dict[str, str]]] = []

    async def execute(self, spec: RequestSpec, store: VariableStore, phase: Phase) -> RequestOutcome:
        self.calls.append((spec.name, phase, store.resolve()))
        if spec.name in self.crashes:
            raise self.crashes[spec.name]
        now = time.monotonic()
        error = self.failures.get(spec.name)
        extracted: Tuple[Variable, ...] = ()
        if error is None:
            extracted = (
                Variable(f"{spec.name}_var", VariableOrigin.EXTRACTED_FROM_RESPONSE, f"value-of-{spec.name}"),
            )
        return RequestOutcome(
            spec=spec,
            phase=phase,
            error=error,
            start_time=now,
            end_time=now,
            status_code=None if isinstance(error, TransportError) else 200,
            extracted=extracted,
        )

    @property
    def executed(self) -> List[str]:
        return [name for name, _, _ in self.calls]

    def seen_by(self, name: str) -> Dict[str, str]:
        return next(store for executed, _, store in self.calls if executed == name)


@pytest_asyncio.fixture
async def mock_processor() -> AsyncMock:
    """
    Creates a mock ResultProcessor for testing.

    Returns:
        AsyncMock: A mock ResultProcessor with configured async methods.
    """
    return AsyncMock(spec=ResultProcessor)


def test_seed_store_should_contain_random_variable_then_provided_variables() -> None:
    """
    Tests that the initial store has the built-in random value followed by user variables.
    """
    # Act
    store = seed_store({"user": "alice", "env": "prod"})

    # Assert
    variables = list(store)
    assert [v.name for v in variables] == [RANDOM_VARIABLE_NAME, "user", "env"]
    assert all(v.origin == VariableOrigin.PROVIDED for v in variables)
    random_value = variables[0].value
    assert len(random_value) == 8
    int(random_value, 16)


def test_seed_store_should_generate_a_new_random_value_per_run() -> None:
    """
    Tests that the random variable is not a fixed placeholder.
    """
    # Act
    values = {seed_store({}).get(RANDOM_VARIABLE_NAME) for _ in range(20)}

    # Assert
    assert len(values) > 1


def test_seed_store_should_let_user_variables_shadow_builtin() -> None:
    """
    Tests that a user variable named like the built-in one wins when resolving.
    """
    # Act
    store = seed_store({RANDOM_VARIABLE_NAME: "fixed"})

    # Assert
    assert store.get(RANDOM_VARIABLE_NAME) == "fixed"


@pytest.mark.asyncio
async def test_run_chain_should_thread_extracted_variables_forward(mock_processor: AsyncMock) -> None:
    """
    Tests that request N sees the initial variables and those extracted by requests 1..N-1.
    """
    # Arrange
    executor = ScriptedExecutor()
    runner = ChainRunner(executor, mock_processor)
    specs = [make_spec("a"), make_spec("b"), make_spec("c")]
    initial = VariableStore([Variable("user", VariableOrigin.PROVIDED, "alice")])

    # Act
    result = await runner.run_chain("m", specs, initial, stop_on_error=True, phase=Phase.MONITORING)

    # Assert
    assert executor.seen_by("a") == {"user": "alice"}
    assert executor.seen_by("b") == {"user": "alice", "a_var": "value-of-a"}
    assert executor.seen_by("c") == {"user": "alice", "a_var": "value-of-a", "b_var": "value-of-b"}
    assert result.first_error is None
    assert [v.name for v in result.store] == ["user", "a_var", "b_var", "c_var"]
    assert len(result.outcomes) == 3
    assert len(initial) == 1


@pytest.mark.asyncio
async def test_run_chain_should_stop_monitoring_chain_at_first_failure(mock_processor: AsyncMock) -> None:
    """
    Tests that when request k fails, 1..k-1 run fully, k contributes nothing and k+1..N are skipped.
    """
    # Arrange
    error = UnexpectedStatusError(500, {200}, "b")
    executor = ScriptedExecutor(failures={"b": error})
    runner = ChainRunner(executor, mock_processor)
    specs = [make_spec("a"), make_spec("b"), make_spec("c"), make_spec("d")]

    # Act
    result = await runner.run_chain("m", specs, VariableStore(), stop_on_error=True, phase=Phase.MONITORING)

    # Assert
    assert executor.executed == ["a", "b"]
    assert executor.seen_by("b") == {"a_var": "value-of-a"}
    assert result.first_error is error
    assert [v.name for v in result.store] == ["a_var"]
    assert [outcome.spec.name for outcome in result.outcomes] == ["a", "b"]


@pytest.mark.asyncio
async def test_run_chain_should_run_whole_cleanup_chain_despite_failures(mock_processor: AsyncMock) -> None:
    """
    Tests that a failing cleanup request does not prevent the following ones.
    """
    # Arrange
    first = TransportError("connection refused", "b")
    second = ExtractionError("missing", rule=None, request_name="d")  # type: ignore[arg-type]
    executor = ScriptedExecutor(failures={"b": first, "d": second})
    runner = ChainRunner(executor, mock_processor)
    specs = [make_spec(name) for name in "abcde"]

    # Act
    result = await runner.run_chain("m", specs, VariableStore(), stop_on_error=False, phase=Phase.CLEANUP)

    # Assert
    assert executor.executed == ["a", "b", "c", "d", "e"]
    assert executor.seen_by("c") == {"a_var": "value-of-a"}
    assert executor.seen_by("e") == {"a_var": "value-of-a", "c_var": "value-of-c"}
    assert result.first_error is first
    assert [v.name for v in result.store] == ["a_var", "c_var", "e_var"]
    assert [outcome.succeeded for outcome in result.outcomes] == [True, False, True, False, True]


@pytest.mark.asyncio
async def test_run_chain_should_report_every_executed_request(mock_processor: AsyncMock) -> None:
    """
    Tests that the processor receives one outcome per executed request, in order.
    """
    # Arrange
    executor = ScriptedExecutor(failures={"b": TransportError("boom", "b")})
    runner = ChainRunner(executor, mock_processor)
    specs = [make_spec("a"), make_spec("b"), make_spec("c")]

    # Act
    await runner.run_chain("login-flow", specs, VariableStore(), stop_on_error=True, phase=Phase.MONITORING)

    # Assert
    assert mock_processor.process.await_count == 2
    reported = [call.args for call in mock_processor.process.await_args_list]
    assert [(monitor, outcome.spec.name) for monitor, outcome in reported] == [
        ("login-flow", "a"),
        ("login-flow", "b"),
    ]


@pytest.mark.asyncio
async def test_run_chain_should_continue_when_processor_fails(mock_processor: AsyncMock) -> None:
    """
    Tests that a failing processor does not break the chain.
    """
    # Arrange
    mock_processor.process.side_effect = RuntimeError("sink unavailable")
    executor = ScriptedExecutor()
    runner = ChainRunner(executor, mock_processor)

    # Act
    result = await runner.run_chain(
        "m", [make_spec("a"), make_spec("b")], VariableStore(), stop_on_error=True, phase=Phase.MONITORING
    )

    # Assert
    assert executor.executed == ["a", "b"]
    assert result.first_error is None


@pytest.mark.asyncio
async def test_run_chain_with_no_specs_should_return_initial_store(mock_processor: AsyncMock) -> None:
    """
    Tests that an empty chain is a no-op.
    """
    # Arrange
    runner = ChainRunner(ScriptedExecutor(), mock_processor)
    initial = VariableStore([Variable("x", VariableOrigin.PROVIDED, "1")])

    # Act
    result = await runner.run_chain("m", [], initial, stop_on_error=True, phase=Phase.MONITORING)

    # Assert
    assert result.store is initial
    assert result.first_error is None
    assert result.outcomes == ()


@pytest.mark.asyncio
async def test_run_monitor_should_seed_cleanup_with_monitoring_final_store(mock_processor: AsyncMock) -> None:
    """
    Tests that cleanup sees user variables and variables extracted by the monitoring chain.
    """
    # Arrange
    executor = ScriptedExecutor(failures={"m2": TransportError("boom", "m2")})
    runner = ChainRunner(executor, mock_processor)
    monitor = MonitorDefinition(
        name="flow",
        period=timedelta(seconds=30),
        variables={"user": "alice"},
        requests=(make_spec("m1"), make_spec("m2"), make_spec("m3")),
        cleanup=(make_spec("c1"), make_spec("c2")),
    )

    # Act
    monitoring, cleanup = await runner.run_monitor(monitor)

    # Assert
    assert executor.executed == ["m1", "m2", "c1", "c2"]
    assert [phase for _, phase, _ in executor.calls] == [
        Phase.MONITORING,
        Phase.MONITORING,
        Phase.CLEANUP,
        Phase.CLEANUP,
    ]
    seen_by_c1 = executor.seen_by("c1")
    assert seen_by_c1["user"] == "alice"
    assert seen_by_c1["m1_var"] == "value-of-m1"
    assert "m2_var" not in seen_by_c1
    assert RANDOM_VARIABLE_NAME in seen_by_c1
    assert executor.seen_by("c2")["c1_var"] == "value-of-c1"
    assert isinstance(monitoring.first_error, TransportError)
    assert cleanup.first_error is None


@pytest.mark.asyncio
async def test_run_monitor_should_use_same_random_value_within_one_run(mock_processor: AsyncMock) -> None:
    """
    Tests that every request of one tick sees the same random value.
    """
    # Arrange
    executor = ScriptedExecutor()
    runner = ChainRunner(executor, mock_processor)
    monitor = MonitorDefinition(
        name="flow",
        period=timedelta(seconds=30),
        variables={},
        requests=(make_spec("m1"), make_spec("m2")),
        cleanup=(make_spec("c1"),),
    )

    # Act
    await runner.run_monitor(monitor)

    # Assert
    values = {store[RANDOM_VARIABLE_NAME] for _, _, store in executor.calls}
    assert len(values) == 1


@pytest.mark.asyncio
async def test_run_monitor_should_run_cleanup_when_executor_raises(mock_processor: AsyncMock) -> None:
    """
    Tests that an exception escaping the executor becomes a failed outcome and cleanup still runs.
    """
    # Arrange
    crash = ValueError("Forbidden control character detected in headers")
    executor = ScriptedExecutor(crashes={"data": crash, "logout": crash})
    runner = ChainRunner(executor, mock_processor)
    monitor = MonitorDefinition(
        name="login-flow",
        period=timedelta(seconds=30),
        variables={},
        requests=(make_spec("login"), make_spec("data"), make_spec("after")),
        cleanup=(make_spec("logout"), make_spec("release")),
    )

    # Act
    monitoring, cleanup = await runner.run_monitor(monitor)

    # Assert
    assert executor.executed == ["login", "data", "logout", "release"]
    assert isinstance(monitoring.first_error, ExecutionError)
    assert monitoring.first_error.request_name == "data"
    assert monitoring.first_error.__cause__ is crash
    assert monitoring.outcomes[-1].extracted == ()
    assert monitoring.outcomes[-1].status_code is None
    assert [outcome.succeeded for outcome in cleanup.outcomes] == [False, True]
    assert mock_processor.process.await_count == 4
