"""Exception hierarchy for philoscope."""


class PhilosophyEngineError(Exception):
    """Base class for all philoscope errors."""
    pass


class RuleSyntaxError(PhilosophyEngineError):
    """Rule text could not be tokenized or parsed.

    Contained by compile_rule(); only parse_rule() lets it escape.
    """

    def __init__(self, message: str, rule: str = "", position: int = -1):
        super().__init__(message)
        self.rule = rule
        self.position = position


class CatalogError(PhilosophyEngineError):
    """Philosophy catalog is missing or violates the schema. Always fatal."""
    pass
