"""
AWS provider for the Lambda deployer.

Modules:
    clients: boto3 session and client creation per region
    lambda_manager: get/create/update function calls
    event_sources: event source mapping diff and concurrent apply
    schedule_events: sequential EventBridge schedule upserts
    results: OperationOutcome / ReconcileResult records
"""

from .clients import create_aws_clients
from .results import OperationOutcome, ReconcileResult

__all__ = ["create_aws_clients", "OperationOutcome", "ReconcileResult"]
