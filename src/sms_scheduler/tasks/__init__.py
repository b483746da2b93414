"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, Contact, Device)
- task_store.py: SQLite-backed storage + query/update helpers
- task_selector.py: due-task predicate evaluated against one "now"
- task_executor.py: one delivery attempt through the Sender port
- task_scheduler.py: fixed-cadence loop that drives due tasks through the executor
- task_stats.py: counts per status
- task_export.py: CSV projection of all tasks
- task_api.py: scheduling requests and read helpers used by connectors
"""
