"""Services for replication, settlement, persistence and logging."""
