# taskminder/core/errors.py

class TaskError(Exception):
    """Base class for every error the task manager surfaces."""

class InvalidInputError(TaskError):
    """Caller-supplied data violates a precondition (e.g. empty title)."""

class NotFoundError(TaskError):
    """The referenced task id does not exist."""

    def __init__(self, task_id):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id

class UnavailableError(TaskError):
    """The store or its infrastructure failed."""
