"""
Dialect configurations for key extraction.

Each dialect has its own module defining:
- Key patterns (which call/directive syntaxes reference keys)
- Extensions and compound suffixes it claims
- An optional content sniffer for shared extensions

Supported dialects:
- javascript.py: JavaScript (.js, .jsx, .mjs, .cjs)
- typescript.py: TypeScript (.ts, .tsx) - adds Angular services
- vue.py: Vue single-file components (.vue)
- angular.py: Angular templates (.html, .htm)
- php.py: PHP (.php) and Blade (.blade.php, sniffed .php)
- dart.py: Flutter (.dart)
"""

from .javascript import JAVASCRIPT_CONFIG
from .typescript import TYPESCRIPT_CONFIG
from .vue import VUE_CONFIG
from .angular import ANGULAR_TEMPLATE_CONFIG
from .php import PHP_CONFIG, BLADE_CONFIG
from .dart import DART_CONFIG

BUILTIN_DIALECTS = [
    JAVASCRIPT_CONFIG,
    TYPESCRIPT_CONFIG,
    VUE_CONFIG,
    ANGULAR_TEMPLATE_CONFIG,
    PHP_CONFIG,
    BLADE_CONFIG,
    DART_CONFIG,
]

__all__ = [
    'JAVASCRIPT_CONFIG',
    'TYPESCRIPT_CONFIG',
    'VUE_CONFIG',
    'ANGULAR_TEMPLATE_CONFIG',
    'PHP_CONFIG',
    'BLADE_CONFIG',
    'DART_CONFIG',
    'BUILTIN_DIALECTS',
]
