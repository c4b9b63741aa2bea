"""Error taxonomy for a question-generation run."""


class QuestGenError(Exception):
    """Base class for all run errors."""


class GenerationFailure(QuestGenError):
    """The completion capability failed (network, auth, timeout, provider error).

    ``step`` is the name of the Agent Step whose call failed, once known.
    """

    def __init__(self, message: str, step: str | None = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def user_message(self) -> str:
        """Message safe to show to the remote caller."""
        where = f" during {self.step}" if self.step else ""
        return f"Failed to generate questions{where}: {self.message}"


class RoutingExhaustion(GenerationFailure):
    """The graph tried to loop past the configured iteration bound."""

    def user_message(self) -> str:
        return f"Question generation stopped: routing exhausted ({self.message})"


class UnexpectedPayloadShape(QuestGenError):
    """The terminal step produced structured data instead of prose."""


class SinkUnavailable(QuestGenError):
    """The consumer's channel rejected a write."""
