"""Exception hierarchy for the roundtable engine."""


class RoundtableError(Exception):
    """Base for every error raised by the engine."""

    def __init__(
        self,
        message: str,
        code: str = "ROUNDTABLE_ERROR",
        provider: str | None = None,
        retryable: bool = False,
    ) -> None:
        self.code = code
        self.provider = provider
        self.retryable = retryable
        super().__init__(message)


class ConfigurationError(RoundtableError):
    """Raised when a component is constructed with missing or invalid collaborators."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")


class AgentError(RoundtableError):
    def __init__(self, message: str, provider: str | None = None, retryable: bool = False) -> None:
        super().__init__(message, code="AGENT_ERROR", provider=provider, retryable=retryable)


class SessionError(RoundtableError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="SESSION_ERROR")


class ModeNotFoundError(RoundtableError):
    def __init__(self, mode_name: str, available: list[str]) -> None:
        self.mode_name = mode_name
        super().__init__(
            f"Mode '{mode_name}' not registered. Available modes: {', '.join(available)}",
            code="MODE_NOT_FOUND",
        )


class ConsensusAnalyzerUnavailableError(RoundtableError):
    """Raised when AI-backed consensus is requested but no analyzer is configured."""

    def __init__(self) -> None:
        super().__init__(
            "AI consensus analyzer not available: configure one on the engine "
            "or use analyze_consensus() for rule-based analysis",
            code="CONSENSUS_ANALYZER_UNAVAILABLE",
        )
