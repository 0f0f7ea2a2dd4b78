"""
=============================================================================
CORE NETWORKING AND CONCURRENCY
=============================================================================

The transport half of the engine. Nothing here knows about HTTP.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   SocketServer            ThreadPool               Connection        │
    │   ────────────            ──────────               ──────────        │
    │   listening socket   ──►  fixed workers,      ──►  one accepted     │
    │   acceptor thread         unbounded queue          client socket    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THREAD-PER-CONNECTION, POOLED
=============================================================================

One dedicated thread accepts. A fixed pool of workers each own one
connection at a time, start to finish:

    read request head → dispatch → write response → close

There is no concurrency inside a single request.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool, Task

__all__ = [
    "SocketServer",     # Listening socket + acceptor thread
    "Connection",       # One client socket, line reading, close sequence
    "ConnectionState",  # Lifecycle of a Connection
    "ThreadPool",       # Fixed workers with grace-then-force shutdown
    "Task",             # Queued unit of work with a cancel hook
]
