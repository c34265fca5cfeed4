"""
Routing state shared by the receive path, the broadcast timer and the SPF timer.

The state holds this node's own cost vector and the most recent vector heard
from every node in the network.  A single lock serialises all access so a
reader never observes a half-written row.  Rows are never expired.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Sequence

from .message import INFINITY
from .topology import Topology


class RoutingState:
  """
  Own cost vector plus the table of vectors collected through flooding.
  """

  def __init__(self, self_id: int, topology: Topology) -> None:
    topology.validate_self(self_id)
    self.self_id = self_id
    self.nodes = topology.nodes
    self._lock = threading.Lock()

    cost = [INFINITY] * topology.nodes
    cost[self_id] = 0
    for neighbor in topology.neighbors:
      cost[neighbor.node_id] = neighbor.cost
    self._self_cost = cost

    self._table: List[Optional[List[int]]] = [None] * topology.nodes
    # The SPF run reads the self row from the same table the neighbors fill.
    self._table[self_id] = list(cost)

  @property
  def self_cost(self) -> List[int]:
    with self._lock:
      return list(self._self_cost)

  def store(self, source_id: int, cost: Sequence[int]) -> bool:
    """
    Record ``cost`` as the latest vector of ``source_id``.

    Last write wins.  Returns ``False`` when the id is outside the network or
    names this node, whose row always mirrors ``self_cost``.
    """
    if not 0 <= source_id < self.nodes or source_id == self.self_id:
      return False
    row = list(cost)
    with self._lock:
      self._table[source_id] = row
    return True

  def vector(self, node_id: int) -> Optional[List[int]]:
    with self._lock:
      row = self._table[node_id]
      return list(row) if row is not None else None

  def missing(self) -> List[int]:
    with self._lock:
      return [idx for idx, row in enumerate(self._table) if row is None]

  def all_received(self) -> bool:
    return not self.missing()

  def snapshot(self) -> Optional[List[List[int]]]:
    """
    Copy every row atomically, or return ``None`` if any row is still absent.
    """
    with self._lock:
      if any(row is None for row in self._table):
        return None
      return [list(row) for row in self._table]  # type: ignore[arg-type]

  def view(self) -> Dict[int, Optional[List[int]]]:
    with self._lock:
      return {
          idx: (list(row) if row is not None else None)
          for idx, row in enumerate(self._table)
      }
