"""
Placeholder substitution for request templates.

Templates reference variables as {{name}}. Substitution is a single pass over
the input using one compiled alternation of all known placeholder tokens, so
substituted values are never scanned again. Placeholders without a matching
variable are left untouched.
"""

import re
from typing import Dict, List, Mapping, Optional, Pattern

from .domain import VariableStore


def placeholder(name: str) -> str:
    """Returns the token that references the given variable name."""
    return "{{" + name + "}}"


class Renderer:
    """
    Renders templates against a snapshot of a VariableStore.

    Building the replacement pattern is done once per store snapshot; a
    renderer is then reused for every field of one request.
    """

    def __init__(self, store: VariableStore) -> None:
        self._replacements: Dict[str, str] = {
            placeholder(name): value for name, value in store.resolve().items()
        }
        self._pattern: Optional[Pattern[str]] = None
        if self._replacements:
            # Longest tokens first so the alternation never stops at a shorter token.
            tokens = sorted(self._replacements, key=len, reverse=True)
            self._pattern = re.compile("|".join(re.escape(token) for token in tokens))

    def render(self, template: str) -> str:
        if not template or self._pattern is None:
            return template
        return self._pattern.sub(lambda match: self._replacements[match.group(0)], template)

    def render_multimap(self, values: Mapping[str, List[str]]) -> Dict[str, List[str]]:
        """
        Renders every value of every key, keeping keys and value order intact.

        Only the values are templates; keys are copied verbatim.
        """
        return {key: [self.render(item) for item in items] for key, items in values.items()}


def render(template: str, store: VariableStore) -> str:
    """Substitutes every {{name}} placeholder in template with its value from store."""
    return Renderer(store).render(template)


def render_multimap(values: Mapping[str, List[str]], store: VariableStore) -> Dict[str, List[str]]:
    """Substitutes placeholders inside every value of a header or query parameter map."""
    return Renderer(store).render_multimap(values)
