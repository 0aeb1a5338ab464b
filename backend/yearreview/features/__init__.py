"""
Provider features.

Each provider lives in its own subpackage (client, schemas, stats); the
review subpackage aggregates them.
"""
