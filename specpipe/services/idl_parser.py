"""WebIDL parsing for the IDL index.

Parsing is done by widlparser. ``parse_idl`` turns the syntax errors it
reports into IdlParseError; ``collect_targets`` maps its constructs onto
link targets.
"""

import logging
from typing import Iterable, List

import widlparser

from ..core.exceptions import IdlParseError
from ..core.models import IdlTarget
from ..utils.text import idl_slug, normalize_term

logger = logging.getLogger(__name__)

# Construct kinds that introduce an indexable top-level name.
# Mixins report "interface"; callback interfaces report "callback".
NAMED_DEFINITIONS = frozenset([
    'interface', 'callback', 'namespace', 'dictionary', 'enum', 'typedef',
])

# Member kinds that introduce an indexable member name
NAMED_MEMBERS = frozenset(['attribute', 'method', 'const', 'dict-member'])


class _ErrorCollector:
    """widlparser UI that keeps syntax errors instead of printing them."""

    def __init__(self):
        self.errors: List[str] = []

    def warn(self, message: str) -> None:
        self.errors.append(message.strip())

    def note(self, message: str) -> None:
        logger.debug(message.strip())


def _unrecognized(constructs: Iterable) -> List[str]:
    found = []
    for construct in constructs:
        if construct.idl_type == 'unknown':
            found.append(str(construct).strip())
        else:
            found.extend(_unrecognized(construct))
    return found


def parse_idl(text: str) -> List[widlparser.Construct]:
    """
    Parse WebIDL source into top-level constructs.

    Raises:
        IdlParseError: The parser reported a syntax error.
    """
    collector = _ErrorCollector()
    parser = widlparser.Parser(text, ui=collector)
    if collector.errors:
        raise IdlParseError(collector.errors[0])

    leftovers = _unrecognized(parser.constructs)
    if leftovers:
        raise IdlParseError(f'Unrecognized IDL: "{leftovers[0]}"')
    return list(parser.constructs)


def _is_named_member(member) -> bool:
    name = member.name
    if member.idl_type not in NAMED_MEMBERS or not name:
        return False
    # Unnamed special operations come back as "__getter__" and the like
    return not (name.startswith('__') or (member.idl_type == 'method' and name == 'constructor'))


def collect_targets(constructs: List[widlparser.Construct]) -> List[IdlTarget]:
    """Anchor targets for named definitions and their named members."""
    targets: List[IdlTarget] = []
    for construct in constructs:
        name = construct.name
        if construct.idl_type not in NAMED_DEFINITIONS or not name:
            continue
        targets.append(IdlTarget(id=f"idl-{idl_slug(name)}", key=normalize_term(name), text=name))
        for member in construct:
            if not _is_named_member(member):
                continue
            targets.append(IdlTarget(
                id=f"idl-{idl_slug(name)}-{idl_slug(member.name)}",
                key=f"{normalize_term(name)}.{normalize_term(member.name)}",
                text=f"{name}.{member.name}",
            ))
    return targets
