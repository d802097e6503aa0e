"""
Dependency ordering for workflow graphs.

Produces the sequence in which the runner executes nodes. Ordering is
best-effort: dangling edges are ignored and cycles are tolerated rather
than rejected, so building an order never fails.
"""

from typing import Dict, Iterator, List, Sequence, Set, Tuple

from aion.engine.models import Edge, Node


def _traverse(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
) -> Tuple[List[Node], List[Tuple[str, str]]]:
    """
    Depth-first walk over incoming edges.

    Every node is a traversal root, in input order. Before a node is emitted
    the sources of its incoming edges are visited, in edge order. Reaching a
    node that is still being visited means a cycle: that edge is skipped and
    recorded as a back edge.

    Returns:
        Tuple of (ordered nodes, back edges as (source, target) pairs)
    """
    by_id: Dict[str, Node] = {}
    for node in nodes:
        by_id.setdefault(node.id, node)

    incoming: Dict[str, List[str]] = {node_id: [] for node_id in by_id}
    for edge in edges:
        if edge.source_node_id in by_id and edge.target_node_id in by_id:
            incoming[edge.target_node_id].append(edge.source_node_id)

    order: List[Node] = []
    back_edges: List[Tuple[str, str]] = []
    emitted: Set[str] = set()
    visiting: Set[str] = set()

    for root in by_id:
        if root in emitted:
            continue

        # Explicit stack instead of recursion so long chains are safe
        visiting.add(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(incoming[root]))]

        while stack:
            node_id, sources = stack[-1]
            for source in sources:
                if source in emitted:
                    continue
                if source in visiting:
                    back_edges.append((source, node_id))
                    continue
                visiting.add(source)
                stack.append((source, iter(incoming[source])))
                break
            else:
                stack.pop()
                visiting.discard(node_id)
                emitted.add(node_id)
                order.append(by_id[node_id])

    return order, back_edges


def order_nodes(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[Node]:
    """
    Compute the execution order for a graph.

    Each node appears exactly once. For every edge whose endpoints are both
    present and not part of a cycle, the source precedes the target.
    """
    order, _ = _traverse(nodes, edges)
    return order


def find_cycle_edges(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[Tuple[str, str]]:
    """List the (source, target) edges skipped because they close a cycle."""
    _, back_edges = _traverse(nodes, edges)
    return back_edges
