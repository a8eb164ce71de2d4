"""
Remote platform integrations.

    providers/
    └── aws/
        ├── clients.py         boto3 client creation per region
        ├── lambda_manager.py  function probe, create and update
        ├── event_sources.py   event source mapping reconciliation
        ├── schedule_events.py EventBridge schedule upserts
        └── results.py         per-operation outcome records
"""
