"""Exception types raised by appdemo."""


class AppDemoError(Exception):
    """Base class for appdemo errors."""


class ConfigError(AppDemoError):
    """Invalid configuration value from the environment or a config file."""


class PipelineError(AppDemoError):
    """A telemetry pipeline step failed; carries a short message and the cause."""

    def __init__(self, message: str, cause: BaseException | None = None):
        self.message = message
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"


class PipelineInitError(PipelineError):
    """The telemetry pipeline could not be built; the process cannot continue."""


class PipelineShutdownError(PipelineError):
    """Flushing or stopping the telemetry pipeline failed."""
