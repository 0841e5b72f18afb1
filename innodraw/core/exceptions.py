# innodraw/core/exceptions.py
class GenerationFailure(Exception):
    """Raised when the diagram structure or a component's artwork cannot be generated."""
    def __init__(self, message="Failed to generate model. Please try a different idea."):
        self.message = message
        super().__init__(self.message)

class StreamFailure(Exception):
    """Raised when a streamed conversation reply is interrupted."""
    def __init__(self, message="The conversation stream was interrupted."):
        self.message = message
        super().__init__(self.message)

class StorageFailure(Exception):
    """Raised when the local project store cannot complete an operation."""
    def __init__(self, operation: str, message="Project storage is unavailable."):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")

class ProjectNotFoundException(Exception):
    """Raised when a project is not found for a given ID."""
    def __init__(self, message="Project not found."):
        self.message = message
        super().__init__(self.message)
