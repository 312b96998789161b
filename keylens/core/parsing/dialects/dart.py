"""
Dart dialect configuration for Flutter localization packages.

Frameworks covered:
- gen_l10n: AppLocalizations.of(context)!.greeting, context.l10n.greeting
- easy_localization: 'key'.tr(), tr('key'), context.tr('key'), 'key'.plural(n)
- flutter_i18n: FlutterI18n.translate(context, 'key'), I18nText('key')
- GetX: 'key'.tr, 'key'.trParams({...}), 'key'.trPlural(...)
"""

from ..config import DialectConfig, KeyPattern


DART_QUOTED_KEY = r"""['"]([^'"\n]+)['"]"""

GEN_L10N_PATTERNS = [
    # Getter access on the generated localizations class
    KeyPattern(
        name="gen_l10n.of",
        pattern=r"\bAppLocalizations\s*\.\s*of\s*\(\s*\w+\s*\)\s*[!?]?\s*\.\s*([A-Za-z_]\w*)",
    ),
    KeyPattern(
        name="gen_l10n.context",
        pattern=r"\bcontext\s*\.\s*l10n\s*\.\s*([A-Za-z_]\w*)",
    ),
]

EASY_LOCALIZATION_PATTERNS = [
    # 'key'.tr(), 'key'.tr, 'key'.plural(n), GetX trParams/trPlural
    KeyPattern(
        name="string-extension",
        pattern=DART_QUOTED_KEY + r"\s*\.\s*(?:tr|trParams|trPlural|plural)\b",
    ),
    # tr('key'), plural('key', n)
    KeyPattern(
        name="easy_localization.tr",
        pattern=r"(?:^|[^\w.])(?:tr|plural)\s*\(\s*" + DART_QUOTED_KEY,
    ),
    KeyPattern(
        name="easy_localization.context",
        pattern=r"\bcontext\s*\.\s*tr\s*\(\s*" + DART_QUOTED_KEY,
    ),
]

FLUTTER_I18N_PATTERNS = [
    KeyPattern(
        name="flutter_i18n.FlutterI18n",
        pattern=r"\bFlutterI18n\s*\.\s*(?:translate|plural)\s*\([^,()]+,\s*" + DART_QUOTED_KEY,
    ),
    KeyPattern(
        name="flutter_i18n.widget",
        pattern=r"\bI18n(?:Text|Plural)\s*\(\s*" + DART_QUOTED_KEY,
    ),
]


DART_CONFIG = DialectConfig(
    name="dart",
    extensions={'.dart'},
    patterns=GEN_L10N_PATTERNS + EASY_LOCALIZATION_PATTERNS + FLUTTER_I18N_PATTERNS,
    frameworks=["gen_l10n", "easy_localization", "flutter_i18n", "GetX"],
)
