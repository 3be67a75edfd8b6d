"""Tests for the simulation driver."""

import asyncio

import pytest

from core.constants import NodeStatus, RunStatus
from core.exceptions import ParseError, SimulationInProgressError
from simulator.classifier import NodeCategory
from simulator.driver import (
    CancellationToken,
    DelayPolicy,
    SimulationDriver,
    SimulationObserver,
)
from simulator.synthesizer.base import BaseGenerator
from simulator.synthesizer.registry import GeneratorRegistry

from conftest import connect, fixed_clock, make_workflow


def chain(*types):
    """A -> B -> C ... with the given node types."""
    names = [chr(ord("A") + i) for i in range(len(types))]
    connections = {names[i]: connect(names[i + 1]) for i in range(len(names) - 1)}
    return make_workflow(list(zip(names, types)), connections)


class ExplodingGenerator(BaseGenerator):
    category = NodeCategory.HTTP_REQUEST

    def generate(self, node_name, parameters, upstream_output, context):
        raise RuntimeError("generator exploded")


def strip_timestamps(run_dict):
    run_dict = dict(run_dict)
    for key in ("run_id", "started_at", "completed_at", "total_time_ms", "logs"):
        run_dict.pop(key)
    return run_dict


@pytest.mark.unit
class TestScenarios:

    async def test_linear_function_chain(self, driver):
        run = await driver.run(chain("function", "function", "function"))
        assert run.execution_order == ["A", "B", "C"]
        assert run.status == RunStatus.COMPLETED
        assert all(state.status == NodeStatus.COMPLETED for state in run.nodes.values())
        assert run.nodes["B"].input_data == run.nodes["A"].output
        assert run.final_output == run.nodes["C"].output

    async def test_http_request_node(self, driver):
        run = await driver.run(make_workflow([("Fetch", "n8n-nodes-base.httpRequest")]))
        state = run.nodes["Fetch"]
        assert state.category == NodeCategory.HTTP_REQUEST
        assert isinstance(state.output, list)
        assert len(state.output) == 3
        assert state.item_count == 3

    async def test_disconnected_nodes(self, driver):
        run = await driver.run(make_workflow([("A", "function"), ("B", "function")]))
        assert run.execution_order == ["A", "B"]
        assert run.nodes["A"].input_data is None
        assert run.nodes["B"].input_data is None
        assert run.status == RunStatus.COMPLETED

    async def test_synthesis_failure_stops_run(self, recorder):
        registry = GeneratorRegistry()
        registry.override(NodeCategory.HTTP_REQUEST, ExplodingGenerator)
        driver = SimulationDriver(registry=registry, delay=DelayPolicy.none(), seed=1, clock=fixed_clock)

        run = await driver.run(
            chain("function", "n8n-nodes-base.httpRequest", "function"),
            observer=recorder.as_observer(),
        )
        assert run.nodes["A"].status == NodeStatus.COMPLETED
        assert run.nodes["B"].status == NodeStatus.ERROR
        assert "generator exploded" in run.nodes["B"].error
        assert run.nodes["C"].status == NodeStatus.PENDING
        assert run.status == RunStatus.ERROR
        assert run.error
        assert [event[1] for event in recorder.of("complete")] == ["A", "B"]

    async def test_same_seed_same_outputs(self, demo_doc):
        first = await SimulationDriver(delay=DelayPolicy.none(), seed=9, clock=fixed_clock).run(demo_doc)
        second = await SimulationDriver(delay=DelayPolicy.none(), seed=9, clock=fixed_clock).run(demo_doc)
        first_dict, second_dict = strip_timestamps(first.to_dict()), strip_timestamps(second.to_dict())
        for data in (first_dict, second_dict):
            for node in data["nodes"].values():
                node.pop("elapsed_ms")
            for result in data["results"]:
                result.pop("elapsed_ms")
        assert first_dict == second_dict


@pytest.mark.unit
class TestDriverBehaviour:

    async def test_empty_workflow(self, driver):
        run = await driver.run({"nodes": []})
        assert run.status == RunStatus.COMPLETED
        assert run.execution_order == []
        assert run.final_output is None

    async def test_parse_error_raises_before_run(self, driver):
        with pytest.raises(ParseError):
            await driver.run("{not json")
        assert not driver.is_running

    async def test_input_data_feeds_first_node(self, driver, linear_doc):
        items = [{"email": "lead@example.com"}]
        run = await driver.run(linear_doc, input_data=items)
        assert run.nodes["Webhook"].input_data == items
        assert run.nodes["Webhook"].output["body"]["data"] == items

    async def test_upstream_prefers_first_source_with_output(self, driver, demo_doc):
        run = await driver.run(demo_doc)
        # Merge Results runs before AI Processing, so only API Request has output
        assert run.nodes["Merge Results"].input_data == run.nodes["API Request"].output

    async def test_results_follow_execution_order(self, driver, demo_doc):
        run = await driver.run(demo_doc)
        assert [r.node_name for r in run.results] == run.execution_order

    async def test_log_stream(self, driver, linear_doc, recorder):
        run = await driver.run(linear_doc, observer=recorder.as_observer())
        lines = [event[1] for event in recorder.of("log")]
        assert lines == run.logs
        assert any("Execution order: Webhook → Fetch → Notify" in line for line in lines)
        assert any("✅ Completed: Fetch → 3 item(s) in" in line for line in lines)
        assert all(line.startswith("[12:00:00] ") for line in lines)

    async def test_observer_event_order(self, driver, linear_doc, recorder):
        await driver.run(linear_doc, observer=recorder.as_observer())
        statuses = [(e[1], e[2]) for e in recorder.of("status")]
        assert statuses[:2] == [("Webhook", NodeStatus.RUNNING), ("Webhook", NodeStatus.COMPLETED)]
        assert [e[1] for e in recorder.of("start")] == ["Webhook", "Fetch", "Notify"]

    async def test_async_observer_and_failing_callbacks(self, driver, linear_doc):
        seen = []

        async def on_node_start(name):
            seen.append(name)

        def on_log(line):
            raise RuntimeError("observer is broken")

        run = await driver.run(linear_doc, observer=SimulationObserver(on_node_start=on_node_start, on_log=on_log))
        assert seen == ["Webhook", "Fetch", "Notify"]
        assert run.status == RunStatus.COMPLETED

    async def test_cycle_runs_once(self, driver):
        doc = make_workflow([("A", "function"), ("B", "function")], {"A": connect("B"), "B": connect("A")})
        run = await driver.run(doc)
        assert run.status == RunStatus.COMPLETED
        assert len(run.results) == 2


@pytest.mark.unit
class TestDelayAndCancellation:

    async def test_delay_uses_injected_sleep(self, linear_doc):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        driver = SimulationDriver(delay=DelayPolicy(500, 1500), sleep=fake_sleep, seed=1, clock=fixed_clock)
        await driver.run(linear_doc)
        assert len(sleeps) == 3
        assert all(0.5 <= s <= 1.5 for s in sleeps)

    async def test_delay_does_not_change_outputs(self, linear_doc):
        async def fake_sleep(seconds):
            return None

        instant = await SimulationDriver(delay=DelayPolicy.none(), seed=5, clock=fixed_clock).run(linear_doc)
        animated = await SimulationDriver(
            delay=DelayPolicy(10, 20), sleep=fake_sleep, seed=5, clock=fixed_clock
        ).run(linear_doc)
        assert instant.final_output == animated.final_output

    def test_delay_policy_bounds(self):
        with pytest.raises(ValueError):
            DelayPolicy(10, 5)
        with pytest.raises(ValueError):
            DelayPolicy(-1, 5)
        assert DelayPolicy.none().next_delay_ms() == 0

    async def test_cancel_before_start(self, driver, linear_doc):
        token = CancellationToken()
        token.cancel("user left")
        run = await driver.run(linear_doc, cancel_token=token)
        assert run.status == RunStatus.CANCELLED
        assert all(state.status == NodeStatus.PENDING for state in run.nodes.values())

    async def test_cancel_during_delay(self, linear_doc, recorder):
        driver = None

        async def cancelling_sleep(seconds):
            driver.cancel("stop")

        driver = SimulationDriver(delay=DelayPolicy(1, 2), sleep=cancelling_sleep, seed=1, clock=fixed_clock)
        run = await driver.run(linear_doc, observer=recorder.as_observer())
        assert run.status == RunStatus.CANCELLED
        assert run.nodes["Webhook"].status == NodeStatus.ERROR
        assert run.nodes["Fetch"].status == NodeStatus.PENDING
        assert not driver.is_running

        completed = recorder.of("complete")
        assert [event[1] for event in completed] == ["Webhook"]
        assert completed[0][2].status == NodeStatus.ERROR
        assert completed[0][2].error == "Execution cancelled"

    def test_cancel_without_active_run(self, driver):
        assert driver.cancel() is False

    async def test_concurrent_run_is_rejected(self, linear_doc):
        release = asyncio.Event()

        async def blocking_sleep(seconds):
            await release.wait()

        driver = SimulationDriver(delay=DelayPolicy(1, 2), sleep=blocking_sleep, seed=1, clock=fixed_clock)
        first = asyncio.create_task(driver.run(linear_doc))
        await asyncio.sleep(0)
        assert driver.is_running

        with pytest.raises(SimulationInProgressError):
            await driver.run(linear_doc)

        release.set()
        run = await first
        assert run.status == RunStatus.COMPLETED
        assert not driver.is_running
