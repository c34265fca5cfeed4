#!/usr/bin/env python3
"""
Entry point for a single link-state routing node.

Usage::

  lsrouter <node-id> <port> <topology-file>
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from . import timers
from .cli import CliShell
from .events import EventLoop
from .router import Router
from .spf import SpfResult, format_routing_table
from .topology import ConfigError, Topology, load_topology
from .transport import TransportError

TRACE = 5


def parse_args(argv: list[str]) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
      description="Link-state routing node: floods its link costs and prints shortest paths.",
  )
  parser.add_argument("node_id", type=int, help="Id of this node, 0 <= id < node count")
  parser.add_argument("port", type=int, help="UDP port this node listens on")
  parser.add_argument("config", type=Path, help="Topology file (text or YAML)")
  parser.add_argument("--peer-ip", default=None, help="Address all neighbors listen on (default 127.0.0.1)")
  parser.add_argument("--neighbor-update", type=int, default=None, metavar="MS",
                      help="Interval between link state broadcasts in milliseconds (default 1000)")
  parser.add_argument("--route-update", type=int, default=None, metavar="MS",
                      help="Interval between route computations in milliseconds (default 10000)")
  parser.add_argument("--log-level", default="info", choices=["trace", "debug", "info", "warning", "error"])
  parser.add_argument("--no-cli", action="store_true", help="Do not start the interactive console")
  return parser.parse_args(argv)


def setup_logging(level_name: str) -> None:
  level = logging.getLevelName(level_name.upper())
  if isinstance(level, str):
    level = logging.INFO

  logging.basicConfig(
      level=level,
      format="%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s: %(message)s",
  )
  if level_name == "trace":
    logging.addLevelName(TRACE, "TRACE")
    logging.getLogger().setLevel(TRACE)


def resolve_intervals(args: argparse.Namespace, topology: Topology) -> Dict[str, Any]:
  """
  Command line flags win over topology ``defaults``, which win over timers.py.
  """
  defaults = topology.defaults
  neighbor_ms = _pick(args.neighbor_update, defaults.get("neighbor_update_ms"))
  route_ms = _pick(args.route_update, defaults.get("route_update_ms"))
  for name, value in (("neighbor update", neighbor_ms), ("route update", route_ms)):
    if value is not None and (not isinstance(value, int) or value <= 0):
      raise ConfigError(f"{name} interval must be a positive number of milliseconds")
  return {
      "peer_ip": str(_pick(args.peer_ip, defaults.get("peer_ip")) or timers.DEFAULT_PEER_IP),
      "neighbor_update": neighbor_ms / 1000.0 if neighbor_ms else timers.NEIGHBOR_UPDATE_INTERVAL,
      "route_update": route_ms / 1000.0 if route_ms else timers.ROUTE_UPDATE_INTERVAL,
  }


def print_routing_table(result: SpfResult) -> None:
  print("\n".join(format_routing_table(result)), flush=True)


def main(argv: list[str]) -> int:
  args = parse_args(argv)
  setup_logging(args.log_level)

  try:
    topology = load_topology(args.config)
    topology.validate_self(args.node_id)
    options = resolve_intervals(args, topology)
  except ConfigError as exc:
    logging.error("invalid topology: %s", exc)
    return 1

  loop = EventLoop()
  router = Router(
      node_id=args.node_id,
      port=args.port,
      topology=topology,
      event_loop=loop,
      on_routes=print_routing_table,
      **options,
  )

  cli: Optional[CliShell] = None
  cli_thread: Optional[threading.Thread] = None
  if not args.no_cli:
    cli = CliShell(router=router)
    cli_thread = threading.Thread(target=cli.run, name="cli", daemon=True)

  logging.info("starting router %s", args.node_id)
  try:
    router.bootstrap()
  except TransportError as exc:
    logging.error("cannot start router %s: %s", args.node_id, exc)
    router.shutdown()
    loop.close()
    return 1
  if cli_thread is not None:
    cli_thread.start()

  status = 0
  try:
    loop.run()
  except KeyboardInterrupt:
    logging.warning("interrupt received, shutting down")
  except TransportError as exc:
    logging.error("receive loop failed: %s", exc)
    status = 1
  finally:
    with contextlib.suppress(Exception):
      loop.stop()
    router.shutdown()
    loop.close()
    if cli is not None and cli_thread is not None:
      cli.stop()
      cli_thread.join(timeout=1)

  return status


def _pick(*values: Any) -> Any:
  for value in values:
    if value is not None:
      return value
  return None


def run() -> None:
  sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
  run()
