"""Simulation Driver: walks a workflow graph one node at a time.

For each node in execution order the driver finds the upstream output,
moves the node to ``running``, waits an artificial delay, asks the
synthesizer for a mock payload and finally marks the node ``completed``
or ``error``. Progress is reported through a SimulationObserver and an
append-only, timestamped log stream.

Usage:
    driver = SimulationDriver(delay=DelayPolicy.none(), seed=42)
    run = await driver.run(workflow_json, observer=SimulationObserver(on_log=print))
"""

import asyncio
import inspect
import random
import time
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import structlog

from core.constants import DEFAULT_MAX_DELAY_MS, DEFAULT_MIN_DELAY_MS, LOG_RULE, RunStatus
from core.exceptions import NodeSynthesisError, SimulationInProgressError
from simulator.classifier import classify, short_type
from simulator.graph import WorkflowGraph, parse
from simulator.sequencer import order
from simulator.state import NodeExecutionState, RunState
from simulator.synthesizer.base import Clock, SynthesisContext, count_items, input_items, utc_now
from simulator.synthesizer.registry import GeneratorRegistry, get_generator_registry

logger = structlog.get_logger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


class DelayPolicy:
    """Bounded random per-node delay, in milliseconds.

    Draws from its own random source so payload determinism does not
    depend on whether runs are animated.
    """

    def __init__(
        self,
        min_ms: float = DEFAULT_MIN_DELAY_MS,
        max_ms: float = DEFAULT_MAX_DELAY_MS,
        rng: Optional[random.Random] = None,
    ):
        if min_ms < 0 or max_ms < 0:
            raise ValueError("Delay bounds must not be negative")
        if min_ms > max_ms:
            raise ValueError("min_ms must not exceed max_ms")
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._rng = rng or random.Random()

    @classmethod
    def none(cls) -> "DelayPolicy":
        """No delay at all: runs complete as fast as synthesis allows."""
        return cls(0, 0)

    @classmethod
    def from_settings(cls, settings=None) -> "DelayPolicy":
        if settings is None:
            from app.config import get_settings

            settings = get_settings()
        settings.validate_delays()
        return cls(*settings.delay_window)

    @property
    def is_instant(self) -> bool:
        return self.max_ms <= 0

    def next_delay_ms(self) -> float:
        if self.is_instant:
            return 0.0
        return self.min_ms + self._rng.random() * (self.max_ms - self.min_ms)

    def __repr__(self) -> str:
        return f"DelayPolicy(min_ms={self.min_ms}, max_ms={self.max_ms})"


class CancellationToken:
    """Cooperative cancellation flag checked between nodes and after delays."""

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class SimulationObserver:
    """Progress callbacks. Each may be a plain function or a coroutine function.

    - on_node_start(name)
    - on_node_complete(name, result: ExecutionResult)
    - on_log(line)
    - on_status_change(name, status: NodeStatus)

    on_node_complete fires whenever a node leaves ``running``, including a
    node cancelled during its delay. Exceptions raised by a callback are
    logged and never abort the run.
    """

    on_node_start: Optional[Callable] = None
    on_node_complete: Optional[Callable] = None
    on_log: Optional[Callable] = None
    on_status_change: Optional[Callable] = None


class SimulationDriver:
    """Runs workflow simulations one node at a time.

    A driver executes at most one run at a time: calling run() while a run
    is in flight raises SimulationInProgressError, and cancel() stops the
    active run at its next checkpoint.
    """

    def __init__(
        self,
        registry: Optional[GeneratorRegistry] = None,
        delay: Optional[DelayPolicy] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Clock = utc_now,
        sleep: SleepFn = asyncio.sleep,
        timer: Callable[[], float] = time.perf_counter,
    ):
        self._registry = registry or get_generator_registry()
        self._delay = delay if delay is not None else DelayPolicy()
        self._seed = seed
        self._rng = rng or random.Random()
        self._clock = clock
        self._sleep = sleep
        self._timer = timer
        self._active: Optional[CancellationToken] = None

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def cancel(self, reason: Optional[str] = None) -> bool:
        """Cancel the active run. Returns False when nothing is running."""
        if self._active is None:
            return False
        self._active.cancel(reason)
        logger.info("Simulation cancellation requested", reason=reason)
        return True

    async def run(
        self,
        workflow: Any,
        observer: Optional[SimulationObserver] = None,
        input_data: Any = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RunState:
        """Simulate a workflow end to end.

        Args:
            workflow: WorkflowGraph, mapping or JSON text
            observer: Progress callbacks
            input_data: Items handed to the first node in execution order
            cancel_token: External cancellation handle

        Returns:
            The finished RunState (completed, error or cancelled)

        Raises:
            ParseError: If the workflow cannot be parsed; no run is started
            SimulationInProgressError: If this driver is already running
        """
        if self._active is not None:
            raise SimulationInProgressError()

        graph = parse(workflow)
        token = cancel_token or CancellationToken()
        run_id = str(uuid.uuid4())
        self._active = token
        try:
            with structlog.contextvars.bound_contextvars(run_id=run_id):
                return await self._execute(
                    run_id, graph, observer or SimulationObserver(), input_data, token
                )
        finally:
            self._active = None

    async def _execute(
        self,
        run_id: str,
        graph: WorkflowGraph,
        observer: SimulationObserver,
        input_data: Any,
        token: CancellationToken,
    ) -> RunState:
        rng = random.Random(self._seed) if self._seed is not None else self._rng
        names = order(graph)

        run = RunState(run_id=run_id, workflow_name=graph.name)
        run.execution_order = names
        for name in names:
            node = graph.get_node(name)
            run.nodes[name] = NodeExecutionState(
                name=name, node_type=node.type, category=classify(node.type)
            )

        run.status = RunStatus.RUNNING
        run.started_at = self._clock().isoformat()
        run_started = self._timer()

        logger.info("Simulation started", workflow=graph.name, nodes=len(names))
        await self._log(run, observer, f"🚀 Starting workflow execution: {graph.name}")
        await self._log(run, observer, LOG_RULE)
        await self._log(run, observer, f"📋 Workflow: {len(names)} nodes to execute")
        await self._log(run, observer, f"🔗 Execution order: {' → '.join(names)}")
        if input_data is not None:
            await self._log(
                run, observer, f"📥 Using custom input data: {len(input_items(input_data))} item(s)"
            )
        await self._log(run, observer, LOG_RULE)

        outputs: Dict[str, Any] = {}
        last_reached: Optional[str] = None

        for index, name in enumerate(names):
            if token.cancelled:
                run.status = RunStatus.CANCELLED
                break

            state = run.nodes[name]
            node = graph.get_node(name)
            last_reached = name
            run.current_node = name

            upstream = self._upstream_output(graph, name, outputs)
            if index == 0 and input_data is not None:
                upstream = input_data

            state.start(self._clock(), upstream)
            await self._notify(observer.on_status_change, name, state.status)
            await self._log(run, observer, f"▶️ Running: {name} ({short_type(node.type) or 'Node'})")
            await self._notify(observer.on_node_start, name)

            node_started = self._timer()
            delay_ms = self._delay.next_delay_ms()
            if delay_ms > 0:
                await self._sleep(delay_ms / 1000)

            if token.cancelled:
                state.fail("Execution cancelled", self._elapsed_ms(node_started), self._clock())
                await self._notify(observer.on_status_change, name, state.status)
                await self._log(run, observer, f"⏹️ Cancelled: {name}")
                execution_result = state.to_result()
                run.results.append(execution_result)
                run.status = RunStatus.CANCELLED
                await self._notify(observer.on_node_complete, name, execution_result)
                break

            context = SynthesisContext(
                rng=rng,
                clock=self._clock,
                node_type=node.type,
                previous_outputs=dict(outputs),
            )
            try:
                result = self._registry.synthesize(
                    state.category, name, node.parameters, upstream, context
                )
            except NodeSynthesisError as e:
                state.fail(e.message, self._elapsed_ms(node_started), self._clock())
                run.status = RunStatus.ERROR
                run.error = e.message
                logger.warning("Node synthesis failed", node=name, error=e.message)
                await self._notify(observer.on_status_change, name, state.status)
                await self._log(run, observer, f"❌ Error in {name}: {e.message}")
                execution_result = state.to_result()
                run.results.append(execution_result)
                await self._notify(observer.on_node_complete, name, execution_result)
                break

            for line in result.logs:
                await self._log(run, observer, f"   {line}")
            state.complete(
                result.output,
                result.item_count,
                self._elapsed_ms(node_started),
                self._clock(),
                logs=result.logs,
            )
            outputs[name] = result.output
            await self._notify(observer.on_status_change, name, state.status)
            await self._log(
                run,
                observer,
                f"✅ Completed: {name} → {state.item_count} item(s) in {state.elapsed_ms}ms",
            )
            execution_result = state.to_result()
            run.results.append(execution_result)
            await self._notify(observer.on_node_complete, name, execution_result)
        else:
            run.status = RunStatus.COMPLETED

        run.current_node = None
        run.final_output = run.nodes[last_reached].output if last_reached else None
        run.total_time_ms = self._elapsed_ms(run_started)
        run.completed_at = self._clock().isoformat()
        await self._log_summary(run, observer, token)
        logger.info(
            "Simulation finished",
            status=run.status.value,
            nodes_completed=run.completed_count,
            total_time_ms=run.total_time_ms,
        )

        return run

    @staticmethod
    def _upstream_output(graph: WorkflowGraph, name: str, outputs: Dict[str, Any]) -> Any:
        """Output of the first source (connection order) that already produced one."""
        for source in graph.upstream_of(name):
            if source in outputs:
                return outputs[source]
        return None

    def _elapsed_ms(self, since: float) -> int:
        return max(int(round((self._timer() - since) * 1000)), 0)

    async def _log_summary(self, run: RunState, observer: SimulationObserver, token: CancellationToken):
        await self._log(run, observer, LOG_RULE)
        if run.status == RunStatus.COMPLETED:
            await self._log(run, observer, f"🏁 Workflow completed in {run.total_time_ms}ms")
        elif run.status == RunStatus.CANCELLED:
            reason = f": {token.reason}" if token.reason else ""
            await self._log(run, observer, f"⏹️ Workflow cancelled after {run.total_time_ms}ms{reason}")
        else:
            await self._log(run, observer, f"❌ Workflow failed after {run.total_time_ms}ms: {run.error}")
        await self._log(run, observer, f"   Nodes executed: {run.completed_count}/{len(run.nodes)}")
        await self._log(run, observer, f"   Final output: {count_items(run.final_output)} item(s)")

    async def _log(self, run: RunState, observer: SimulationObserver, line: str) -> None:
        entry = run.add_log(line, self._clock())
        await self._notify(observer.on_log, entry)

    async def _notify(self, callback: Optional[Callable], *args) -> None:
        if callback is None:
            return
        try:
            outcome = callback(*args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.warning(
                "Observer callback failed",
                callback=getattr(callback, "__name__", repr(callback)),
                error=str(e),
            )


def create_simulation_driver(animate: bool = False, settings=None) -> SimulationDriver:
    """Build a driver from application settings.

    ``animate`` applies the configured delay window; otherwise runs are
    instant. SIMULATION_SEED, when set, makes every run reproducible.
    """
    if settings is None:
        from app.config import get_settings

        settings = get_settings()
    delay = DelayPolicy.from_settings(settings) if animate else DelayPolicy.none()
    return SimulationDriver(delay=delay, seed=settings.SIMULATION_SEED)
