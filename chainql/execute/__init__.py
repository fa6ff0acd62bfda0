"""chainql execution layer: run compiled statements, log them."""
from chainql.execute.gateway import ExecResult, ExecutionGateway
from chainql.execute.query_log import QueryLog

__all__ = ["ExecResult", "ExecutionGateway", "QueryLog"]
