"""Error taxonomy for insight generation.

Scheduling skips are not errors; they are reported as ``Decision`` values on
the run outcome. Everything here either ends a run as FAILED or signals a
programming error in the registry.
"""


class InsightError(Exception):
    """Base class for failures that end a run as FAILED"""


class BackendError(InsightError):
    pass


class BackendRefused(BackendError):
    def __init__(self, reason: str = "Model declined to answer"):
        super().__init__(reason)
        self.reason = reason


class BackendMalformed(BackendError):
    pass


class BackendTransport(BackendError):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PromptBuildFailed(InsightError):
    """Dependency lookup or prompt rendering raised before the backend was called"""


class DecodingFailed(InsightError):
    pass


class PersistenceFailed(InsightError):
    pass


class StoreReadFailed(InsightError):
    pass


class UnknownInsightType(KeyError):
    def __init__(self, identifier: str):
        super().__init__(identifier)
        self.identifier = identifier

    def __str__(self) -> str:
        return f"Unknown insight type: {self.identifier}"


class DependencyCycleError(ValueError):
    pass
