"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskType, TaskOptions, TaskSummary)
- schedule_parser.py: schedule phrases -> ScheduleDescriptor
- cron.py: minute-granularity cron-like field matcher
- task_store.py: SQLite-backed storage, one row per task
- task_runner.py: guarded single-task invocation + run statistics
- dispatch.py: one-shot / heartbeat / cron-poll timers
- task_scheduler.py: the registry front ends talk to
- task_api.py: structured-payload helpers used by front ends
"""
