"""Infrastructure modules for the event relay.

Centralized infrastructure components:
- configuration: Settings management (settings, Settings, SinkSettings)
- logging: Structured logging setup and event context binding
- operations: Operation results and transport error classification
- sinks: Sink registry, factory, dispatcher and channel implementations
"""

# Configuration
from infrastructure.configuration import settings

# Operations
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    # Configuration
    "settings",
    # Operations
    "OperationResult",
    "OperationStatus",
]
