"""
Vue single-file component dialect configuration.

Script blocks use the JavaScript patterns; templates add the v-t
directive and the <i18n-t keypath="..."> component.
"""

from ..config import DialectConfig, KeyPattern
from .javascript import JAVASCRIPT_PATTERNS, QUOTED_KEY


VUE_TEMPLATE_PATTERNS = [
    # v-t="'key'"
    KeyPattern(
        name="vue-i18n.v-t",
        pattern=r"""\bv-t\s*=\s*"\s*'([^'\n]+)'""",
    ),
    # <i18n-t keypath="key">, <i18n keypath="key">
    KeyPattern(
        name="vue-i18n.keypath",
        pattern=r"<i18n(?:-t)?\b[^>]*?\bkeypath\s*=\s*" + QUOTED_KEY,
    ),
]


VUE_CONFIG = DialectConfig(
    name="vue",
    extensions={'.vue'},
    patterns=JAVASCRIPT_PATTERNS + VUE_TEMPLATE_PATTERNS,
    frameworks=["vue-i18n"],
)
