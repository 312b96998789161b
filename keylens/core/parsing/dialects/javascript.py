"""
JavaScript dialect configuration for key extraction.

Defines JAVASCRIPT_CONFIG for .js/.jsx files and the shared pattern
lists reused by TypeScript and Vue single-file components.

Frameworks covered:
- i18next / react-i18next: t('key'), i18n.t('key'), <Trans i18nKey="key">
- vue-i18n: $t('key'), $tc('key'), $te('key')
- react-intl: formatMessage({ id: 'key' }), <FormattedMessage id="key">
"""

from ..config import DialectConfig, KeyPattern


# =============================================================================
# Patterns
# =============================================================================

# Quoted key literal: 'a.b' or "a.b"
QUOTED_KEY = r"""["']([^"'\n]+)["']"""

I18NEXT_PATTERNS = [
    # t('key') but not .post('x'), $t('x') or format('x')
    KeyPattern(
        name="i18next.t",
        pattern=r"(?:^|[^\w.$])t\s*\(\s*" + QUOTED_KEY,
    ),
    # i18n.t('key'), i18next.t('key')
    KeyPattern(
        name="i18next.instance-t",
        pattern=r"\bi18n(?:ext)?\.t\s*\(\s*" + QUOTED_KEY,
    ),
    # <Trans i18nKey="key"> and <Trans i18nKey={'key'}>
    KeyPattern(
        name="react-i18next.Trans",
        pattern=r"<Trans\b[^>]*?\bi18nKey\s*=\s*\{?\s*" + QUOTED_KEY,
    ),
]

VUE_I18N_PATTERNS = [
    # $t('key'), $tc('key', n), $te('key'), $d/$n are not key lookups
    KeyPattern(
        name="vue-i18n.$t",
        pattern=r"\$t[ce]?\s*\(\s*" + QUOTED_KEY,
    ),
]

REACT_INTL_PATTERNS = [
    KeyPattern(
        name="react-intl.formatMessage",
        pattern=r"formatMessage\s*\(\s*\{\s*id\s*:\s*" + QUOTED_KEY,
    ),
    KeyPattern(
        name="react-intl.FormattedMessage",
        pattern=r"<Formatted(?:Message|HTMLMessage)\b[^>]*?\bid\s*=\s*\{?\s*" + QUOTED_KEY,
    ),
    # defineMessages({ greeting: { id: 'key', ... } })
    KeyPattern(
        name="react-intl.defineMessages",
        pattern=r"\bid\s*:\s*" + QUOTED_KEY + r"\s*,\s*defaultMessage\b",
    ),
]

JAVASCRIPT_PATTERNS = I18NEXT_PATTERNS + VUE_I18N_PATTERNS + REACT_INTL_PATTERNS


# =============================================================================
# Configuration
# =============================================================================

JAVASCRIPT_CONFIG = DialectConfig(
    name="javascript",
    extensions={'.js', '.jsx', '.mjs', '.cjs'},
    patterns=JAVASCRIPT_PATTERNS,
    max_file_size=500_000,  # Larger files are almost always bundles
    frameworks=["i18next", "react-i18next", "vue-i18n", "react-intl"],
)
