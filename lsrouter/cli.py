"""
Simple interactive console used to inspect a running routing node.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Iterable

from .spf import format_routing_table

if TYPE_CHECKING:
  from .router import Router

LOGGER = logging.getLogger(__name__)


class CliShell:
  def __init__(self, router: "Router") -> None:
    self.router = router
    self._running = threading.Event()
    self._running.set()
    self._commands = {
        "show": self._cmd_show,
        "send": self._cmd_send,
        "spf": self._cmd_spf,
        "quit": self._cmd_quit,
        "exit": self._cmd_quit,
        "help": self._cmd_help,
    }

  @property
  def running(self) -> bool:
    return self._running.is_set()

  def run(self) -> None:
    while self._running.is_set():
      try:
        line = input("> ")
      except EOFError:
        break
      self.execute(line)

  def execute(self, line: str) -> None:
    tokens = line.split()
    if not tokens:
      return
    handler = self._commands.get(tokens[0])
    if handler is None:
      LOGGER.warning("unknown command: %s", tokens[0])
      return
    try:
      handler(tokens[1:])
    except Exception:  # pragma: no cover - interactive diagnostics
      LOGGER.exception("command failed")

  def stop(self) -> None:
    self._running.clear()

  # ----------------------------------------------------------------- commands
  def _cmd_show(self, args: Iterable[str]) -> None:
    sub = list(args)
    if not sub:
      LOGGER.info("usage: show <routes|vectors|neighbors|stats>")
      return
    topic = sub[0]
    if topic == "routes":
      self._show_routes()
    elif topic == "vectors":
      self._show_vectors()
    elif topic == "neighbors":
      self._show_neighbors()
    elif topic == "stats":
      self._show_stats()
    else:
      LOGGER.warning("unsupported show topic: %s", topic)

  def _cmd_send(self, args: Iterable[str]) -> None:
    if list(args) != ["update"]:
      LOGGER.info("usage: send update")
      return
    self.router.on_broadcast_tick()
    LOGGER.info("link state sent to %d neighbors", self.router.topology.neighbor_count)

  def _cmd_spf(self, _: Iterable[str]) -> None:
    if self.router.on_route_tick() is None:
      LOGGER.info("still waiting for vectors from %s", self.router.state.missing())

  def _cmd_quit(self, _: Iterable[str]) -> None:
    LOGGER.info("exiting CLI")
    self.stop()

  def _cmd_help(self, _: Iterable[str]) -> None:
    LOGGER.info("commands: show routes|vectors|neighbors|stats, send update, spf, quit/exit")

  # ------------------------------------------------------------------- views
  def _show_routes(self) -> None:
    routes = self.router.get_routes()
    if routes is None:
      LOGGER.info("routing table empty")
      return
    for line in format_routing_table(routes):
      LOGGER.info("%s", line)

  def _show_vectors(self) -> None:
    for node_id, vector in sorted(self.router.get_vectors().items()):
      LOGGER.info("%s: %s", node_id, vector if vector is not None else "-")

  def _show_neighbors(self) -> None:
    neighbors = self.router.get_neighbors()
    if not neighbors:
      LOGGER.info("no neighbors configured")
      return
    for neighbor in neighbors:
      LOGGER.info(
          "%s id=%s cost=%s port=%s",
          neighbor.label,
          neighbor.node_id,
          neighbor.cost,
          neighbor.port,
      )

  def _show_stats(self) -> None:
    for key, value in sorted(self.router.stats.items()):
      LOGGER.info("%s=%s", key, value)
