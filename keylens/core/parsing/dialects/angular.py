"""
Angular template dialect configuration.

Covers ngx-translate and Transloco in component templates (.html):
- Pipes: {{ 'key' | translate }}, {{ 'key' | transloco }}
- Directives: <span translate="key">, [translate]="'key'", transloco="key"
- Structural directive: *transloco="let t" followed by t('key')
"""

from ..config import DialectConfig, KeyPattern
from .javascript import QUOTED_KEY


ANGULAR_TEMPLATE_PATTERNS = [
    KeyPattern(
        name="angular.pipe",
        pattern=QUOTED_KEY + r"\s*\|\s*(?:translate|transloco)\b",
    ),
    KeyPattern(
        name="angular.directive",
        pattern=r"""(?:^|[\s<])(?:translate|transloco)\s*=\s*["']([^"'\n{}]+)["']""",
    ),
    KeyPattern(
        name="angular.bound-directive",
        pattern=r"""\[(?:translate|transloco)\]\s*=\s*"\s*'([^'\n]+)'""",
    ),
    KeyPattern(
        name="transloco.t",
        pattern=r"(?:^|[^\w.$])t\s*\(\s*" + QUOTED_KEY,
    ),
]


ANGULAR_TEMPLATE_CONFIG = DialectConfig(
    name="angular-template",
    extensions={'.html', '.htm'},
    patterns=ANGULAR_TEMPLATE_PATTERNS,
    frameworks=["ngx-translate", "Transloco"],
)
