"""
基于 `selectors` 的单线程事件循环，驱动路由节点的三类活动：

- UDP 套接字可读时的接收与转发；
- 周期性的邻居链路状态广播；
- 周期性的路由重算。

回调中应避免长时间阻塞，以免影响定时器精度。套接字回调抛出
``TransportError`` 视为致命错误，事件循环随即退出并把异常交给调用方。
"""

from __future__ import annotations

import heapq
import logging
import selectors
import socket
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .transport import TransportError

LOGGER = logging.getLogger(__name__)


@dataclass(order=True)
class TimerHandle:
  deadline: float
  seq: int
  callback: Callable[[], None] = field(compare=False)
  interval: Optional[float] = field(default=None, compare=False)
  cancelled: bool = field(default=False, compare=False)


class EventLoop:
  """
  定时任务与套接字读事件的复用调度器。
  """

  def __init__(self) -> None:
    self._selector = selectors.DefaultSelector()
    self._timers: List[TimerHandle] = []
    self._seq = 0
    self._running = False
    self._lock = threading.Lock()

  # ------------------------------------------------------------------ timers
  def schedule(self, delay: float, callback: Callable[[], None], *, repeat: bool = False) -> TimerHandle:
    """
    Run ``callback`` after ``delay`` seconds, and every ``delay`` seconds
    afterwards when ``repeat`` is true, until :meth:`cancel` is called.
    """
    if delay < 0:
      raise ValueError("delay must be non-negative")
    if not callable(callback):
      raise TypeError("callback must be callable")

    with self._lock:
      self._seq += 1
      handle = TimerHandle(
          deadline=time.monotonic() + delay,
          seq=self._seq,
          callback=callback,
          interval=delay if repeat else None,
      )
      heapq.heappush(self._timers, handle)
    return handle

  def cancel(self, handle: TimerHandle) -> None:
    handle.cancelled = True

  # ---------------------------------------------------------------- sockets
  def register_socket(
      self,
      sock: socket.socket,
      callback: Callable[[socket.socket], None],
  ) -> Callable[[], None]:
    """
    Call ``callback(sock)`` whenever ``sock`` becomes readable.

    Returns a function that removes the registration.
    """
    if not isinstance(sock, socket.socket):
      raise TypeError("sock must be a socket")
    if not callable(callback):
      raise TypeError("callback must be callable")

    sock.setblocking(False)
    self._selector.register(sock, selectors.EVENT_READ, callback)

    def unregister() -> None:
      try:
        self._selector.unregister(sock)
      except (KeyError, ValueError):
        pass

    return unregister

  # ------------------------------------------------------------------- loop
  @property
  def running(self) -> bool:
    return self._running

  def run(self) -> None:
    """
    Run until :meth:`stop` is called or a socket callback fails fatally.
    """
    self._running = True
    try:
      while self._running:
        self._run_once()
    finally:
      self._running = False

  def stop(self) -> None:
    self._running = False

  def close(self) -> None:
    self._selector.close()

  # ------------------------------------------------------------ internals
  def _run_once(self) -> None:
    now = time.monotonic()

    while True:
      with self._lock:
        if not self._timers or self._timers[0].deadline > now:
          break
        handle = heapq.heappop(self._timers)
      if handle.cancelled:
        continue
      try:
        handle.callback()
      except Exception:
        LOGGER.exception("定时任务执行失败")
      if handle.interval and not handle.cancelled:
        handle.deadline = now + handle.interval
        with self._lock:
          heapq.heappush(self._timers, handle)

    # 最长等待到下一个定时任务到期；这样 stop() 之后循环也能及时退出。
    timeout = 0.5
    with self._lock:
      if self._timers:
        timeout = min(timeout, max(0.0, self._timers[0].deadline - time.monotonic()))

    if not self._selector.get_map():
      time.sleep(timeout)
      return

    for key, _ in self._selector.select(timeout):
      callback = key.data
      try:
        callback(key.fileobj)  # type: ignore[arg-type]
      except TransportError:
        self._running = False
        raise
      except Exception:
        LOGGER.exception("套接字回调执行失败")
