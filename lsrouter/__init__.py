"""
链路状态路由节点的完整实现。

暴露的主要组件：
- `Router`：路由节点核心，负责链路状态泛洪与 Dijkstra 路由计算；
- `EventLoop`：轻量级事件循环，驱动定时广播、定时重算与套接字接收；
- `CliShell`：运行时查看路由表与链路状态的交互式命令行。
"""

from .router import Router  # re-export for convenience
from .events import EventLoop
from .cli import CliShell

__all__ = ["Router", "EventLoop", "CliShell"]
