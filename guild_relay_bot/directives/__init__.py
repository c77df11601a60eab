from .executor import DirectiveExecutor, DirectiveOutcome, DirectiveRun, GuildDirectory
from .parser import Directive, parse_directives, strip_directives

__all__ = [
    "Directive",
    "DirectiveExecutor",
    "DirectiveOutcome",
    "DirectiveRun",
    "GuildDirectory",
    "parse_directives",
    "strip_directives",
]
