"""Ordered text rewrite rules for the template entry point files.

Each rule is a regex substitution applied to the whole file. Rules run in
list order and later rules see the output of earlier ones, so the order of
HTML_RULES matters (the generic ``src`` rule double-prefixes what the
``scripts/`` rule produced, and the collapse rule right after undoes that).
"""
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Sequence, Union

from sitekit.core.logger import get_logger

logger = get_logger(__name__)

PATH_VAR = "{{ path }}"

Replacement = Union[str, Callable[["re.Match[str]"], str]]


@dataclass(frozen=True)
class RewriteRule:
    """A named regex substitution."""

    name: str
    pattern: str
    replacement: Replacement
    flags: int = 0

    def apply(self, text: str) -> str:
        result, count = re.subn(self.pattern, self.replacement, text, flags=self.flags)
        logger.debug(f"Rule {self.name}: {count} replacement(s)")
        return result


def prepend(name: str, header: str) -> RewriteRule:
    """Rule that inserts *header* at the very start of the text, once."""
    return RewriteRule(name, r"\A", lambda _match: header)


def _normalize_script_tag(match: "re.Match[str]") -> str:
    attrs = match.group(1)
    has_defer = re.search(r"\sdefer(?:=\"defer\")?(?=\s|$)", attrs)
    has_module = re.search(r'\stype="module"', attrs)
    if not (has_defer or has_module):
        return match.group(0)

    attrs = re.sub(r"\s+defer(?:=\"defer\")?(?=\s|$)", "", attrs)
    attrs = re.sub(r'\s+type="module"', "", attrs)
    return f"<script{attrs} defer>"


STYLESHEET_RULES: List[RewriteRule] = [
    RewriteRule(
        "import-to-use",
        r"""@import url\(["']?([^"'()\s]+)\.css["']?\);""",
        r'@use "\g<1>";',
    ),
    prepend("front-matter", "---\n---\n\n"),
]

HTML_RULES: List[RewriteRule] = [
    prepend("front-matter", "---\n---\n{% include path.html -%}\n\n"),
    RewriteRule(
        "drop-commented-base",
        r'^[^\n]*<!--\s*<base href="[^"]*"\s*/?>\s*-->[^\n]*(?:\n|\Z)',
        "",
        re.MULTILINE,
    ),
    RewriteRule("styles-href", r'href="(styles/[^"]+)"', rf'href="{PATH_VAR}\g<1>"'),
    RewriteRule("assets-href", r'href="(assets/[^"]+)"', rf'href="{PATH_VAR}\g<1>"'),
    RewriteRule(
        "og-image",
        r'<meta property="og:image" content="([^"]*)"',
        rf'<meta property="og:image" content="{PATH_VAR}\g<1>"',
    ),
    RewriteRule("scripts-src", r'src="(scripts/)([^"]+)"', rf'src="{PATH_VAR}\g<1>dist/\g<2>"'),
    RewriteRule("src", r'src="([^"]+)"', rf'src="{PATH_VAR}\g<1>"'),
    RewriteRule(
        "collapse-repeated-path",
        r'src="(?:' + re.escape(PATH_VAR) + r'){2,}([^"]*)"',
        rf'src="{PATH_VAR}\g<1>"',
    ),
    RewriteRule("script-defer", r"<script\b([^>]*)>", _normalize_script_tag),
]


def apply_rules(text: str, rules: Sequence[RewriteRule]) -> str:
    """Apply *rules* to *text* in order."""
    for rule in rules:
        text = rule.apply(text)
    return text


def rewrite_file(path: Path, rules: Sequence[RewriteRule]) -> bool:
    """Rewrite *path* in place with *rules*.

    Failures are logged as warnings rather than raised; a template missing
    or mangling one entry point should not abort the whole bootstrap.

    Returns:
        True if the file was rewritten
    """
    try:
        text = path.read_text(encoding="utf-8")
        path.write_text(apply_rules(text, rules), encoding="utf-8")
    except (OSError, UnicodeError, re.error) as e:
        logger.warning(f"Failed to update {path.name}: {e}")
        return False
    return True
