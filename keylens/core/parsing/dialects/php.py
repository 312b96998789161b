"""
PHP and Blade dialect configurations.

Laravel helpers are shared; Blade adds its directives. Both claim .php,
so Blade carries a compound suffix (.blade.php) and a content sniffer
for views that do not follow the naming convention.
"""

import re

from ..config import DialectConfig, KeyPattern
from .javascript import QUOTED_KEY


LARAVEL_PATTERNS = [
    # __('key'), but not foo__('x')
    KeyPattern(
        name="laravel.__",
        pattern=r"(?<![\w$])__\s*\(\s*" + QUOTED_KEY,
    ),
    # trans('key'), trans_choice('key', n)
    KeyPattern(
        name="laravel.trans",
        pattern=r"(?<![\w$>:])trans(?:_choice)?\s*\(\s*" + QUOTED_KEY,
    ),
    # Lang::get('key'), Lang::choice('key', n), Lang::has('key')
    KeyPattern(
        name="laravel.Lang",
        pattern=r"\bLang::(?:get|choice|has)\s*\(\s*" + QUOTED_KEY,
    ),
]

BLADE_PATTERNS = [
    KeyPattern(
        name="blade.@lang",
        pattern=r"@lang\s*\(\s*" + QUOTED_KEY,
    ),
    KeyPattern(
        name="blade.@choice",
        pattern=r"@choice\s*\(\s*" + QUOTED_KEY,
    ),
]

_BLADE_MARKERS = re.compile(
    r"@(?:lang|choice|extends|section|yield|include|foreach|endif|endsection)\b|\{\{.*?\}\}|\{!!"
)


def looks_like_blade(text: str) -> bool:
    """
    Sniff Blade syntax in a .php file.

    Blade views contain echo braces or directives; plain PHP classes do not.
    """
    return bool(_BLADE_MARKERS.search(text))


PHP_CONFIG = DialectConfig(
    name="php",
    extensions={'.php'},
    patterns=LARAVEL_PATTERNS,
    frameworks=["Laravel"],
)

BLADE_CONFIG = DialectConfig(
    name="blade",
    extensions={'.php'},
    patterns=LARAVEL_PATTERNS + BLADE_PATTERNS,
    filename_suffixes={'.blade.php'},
    sniffer=looks_like_blade,
    frameworks=["Laravel", "Blade"],
)
