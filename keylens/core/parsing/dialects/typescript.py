"""
TypeScript dialect configuration for key extraction.

Defines TYPESCRIPT_CONFIG for .ts/.tsx files.
Extends JavaScript patterns with Angular service calls, since Angular
components and services are plain TypeScript.
"""

from ..config import DialectConfig, KeyPattern
from .javascript import JAVASCRIPT_PATTERNS, QUOTED_KEY


ANGULAR_SERVICE_PATTERNS = [
    # ngx-translate: this.translate.instant('key'), translateService.get('key')
    KeyPattern(
        name="ngx-translate.service",
        pattern=r"\b(?:translateService|translate)\s*\.\s*(?:instant|get|stream)\s*\(\s*" + QUOTED_KEY,
    ),
    # Transloco: translocoService.translate('key'), selectTranslate('key')
    KeyPattern(
        name="transloco.service",
        pattern=r"\b(?:translocoService|transloco)\s*\.\s*(?:translate|selectTranslate)\s*\(\s*" + QUOTED_KEY,
    ),
    # marker('key') from @biesbjerg/ngx-translate-extract
    KeyPattern(
        name="ngx-translate.marker",
        pattern=r"\b_?marker\s*\(\s*" + QUOTED_KEY,
    ),
]


TYPESCRIPT_CONFIG = DialectConfig(
    name="typescript",
    extensions={'.ts', '.tsx', '.mts', '.cts'},
    patterns=JAVASCRIPT_PATTERNS + ANGULAR_SERVICE_PATTERNS,
    max_file_size=500_000,
    frameworks=["i18next", "react-i18next", "vue-i18n", "react-intl", "ngx-translate", "Transloco"],
)
