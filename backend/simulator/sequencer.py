"""Topological sequencer: linear execution order for a workflow graph.

Order is seeded with every node that has no incoming edge (declaration
order), expanded depth-first along each node's first output port, and
completed with any node never reached. A visited set makes the walk
terminate on cycles: each member of a cycle runs once.
"""

from typing import List

import structlog

from simulator.graph import WorkflowGraph

logger = structlog.get_logger(__name__)


def order(graph: WorkflowGraph) -> List[str]:
    """Compute the execution order of ``graph``.

    Every declared node name appears exactly once, and a node always
    precedes the first-port successors it reached first.
    """
    names = graph.node_names
    if not names:
        return []

    has_incoming = graph.incoming_names()
    seeds = [name for name in names if name not in has_incoming]
    if not seeds:
        # Every node has an incoming edge (full cycle): start somewhere
        seeds = [names[0]]

    visited: set[str] = set()
    execution_order: List[str] = []

    for seed in seeds:
        # Explicit stack reproduces recursive pre-order: children are pushed
        # reversed so the first declared target is expanded first.
        stack = [seed]
        while stack:
            name = stack.pop()
            if name in visited or not graph.has_node(name):
                continue
            visited.add(name)
            execution_order.append(name)
            stack.extend(reversed(graph.successors(name)))

    for name in names:
        if name not in visited:
            visited.add(name)
            execution_order.append(name)

    logger.debug("Execution order computed", nodes=len(execution_order), seeds=len(seeds))
    return execution_order


def find_cycles(graph: WorkflowGraph) -> List[List[str]]:
    """Return the cycles reachable along first output ports.

    The sequencer runs cycles once around instead of rejecting them; this
    lets callers report them. Each cycle is listed once, starting at the
    node where the walk re-entered it.
    """
    cycles: List[List[str]] = []
    seen_cycles: set[frozenset[str]] = set()
    done: set[str] = set()

    for start in graph.node_names:
        if start in done or not graph.has_node(start):
            continue
        path: List[str] = []
        on_path: dict[str, int] = {}
        # (node, iterator over successors)
        stack = [(start, iter(graph.successors(start)))]
        path.append(start)
        on_path[start] = 0
        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                path.pop()
                on_path.pop(node, None)
                done.add(node)
                continue
            if not graph.has_node(child):
                continue
            if child in on_path:
                cycle = path[on_path[child]:]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(list(cycle))
                continue
            if child in done:
                continue
            on_path[child] = len(path)
            path.append(child)
            stack.append((child, iter(graph.successors(child))))

    return cycles
