"""Error types raised while loading, parsing and evaluating suites."""


class SuitePolicyError(Exception):
    """Base class for all suite-policy errors."""


class ParseError(SuitePolicyError):
    """The suite source cannot be parsed at all. No partial report is produced."""

    def __init__(self, message: str, path: str = "<string>", line: int = 1, column: int = 1) -> None:
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        super().__init__(f"{path}:{line}:{column}: {message}")


class UnsupportedConstructError(SuitePolicyError):
    """
    A single test could not be classified.

    Recovered by the parser: the offending test is skipped and the engine
    reports it as a `skipped` finding.
    """

    def __init__(self, message: str, path: str, line: int, column: int, name: str = "") -> None:
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        self.name = name
        super().__init__(f"{path}:{line}:{column}: {message}")


class UnsupportedSuiteError(SuitePolicyError):
    """No parser is registered for the suite's file type."""


class UnknownRuleError(SuitePolicyError):
    """A rule id was requested that is not part of the catalog."""

    def __init__(self, rule_ids: list[str], known: list[str]) -> None:
        self.rule_ids = rule_ids
        self.known = known
        super().__init__(
            f"Unknown rule id(s): {', '.join(rule_ids)}. Known rules: {', '.join(known)}"
        )


class ConfigurationError(SuitePolicyError):
    """A configuration value has the wrong type or an invalid value."""
