"""Exception types raised by the grammar, recognizers, and calendar compiler"""


class GrammarError(ValueError):
    """A grammar was built incorrectly (a programming error, never a parse failure)."""


class RuleInvariantError(RuntimeError):
    """A recognizer matched text whose compiled intervals break an expected shape."""


class CalendarEntryError(ValueError):
    """A calendar entry name matches none of the listing grammars."""
