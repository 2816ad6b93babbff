"""
Interface translations.

A ``TranslationContext`` is built for one request: it loads the strings of
the requested locale with English filling the gaps, and is disposed when the
request ends. Nothing is cached at module level, so edits made by admins are
visible on the next request.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from survivor_hub.config import Locale
from survivor_hub.core.database import get_db
from survivor_hub.core.logging import get_logger
from survivor_hub.models.translation import Translations

logger = get_logger(__name__)

FALLBACK_LOCALE = Locale.EN.value


class TranslationContext:
    """Strings for one locale, resolved against the English fallback."""

    def __init__(self, locale: str, strings: dict[str, str]) -> None:
        self.locale = locale
        self._strings: dict[str, str] | None = strings

    @classmethod
    async def load(cls, db: AsyncSession, locale: str) -> "TranslationContext":
        """
        Load the strings for ``locale``.

        Unknown locales resolve to English.
        """
        if locale not in {loc.value for loc in Locale}:
            logger.debug("translation_locale_unknown", locale=locale)
            locale = FALLBACK_LOCALE

        wanted = {FALLBACK_LOCALE, locale}
        result = await db.execute(
            select(Translations).where(Translations.locale.in_(wanted))  # type: ignore[attr-defined]
        )

        fallback: dict[str, str] = {}
        localized: dict[str, str] = {}
        for entry in result.scalars().all():
            target = localized if entry.locale == locale else fallback
            target[entry.key] = entry.value

        return cls(locale, {**fallback, **localized})

    @property
    def disposed(self) -> bool:
        return self._strings is None

    def _require_strings(self) -> dict[str, str]:
        if self._strings is None:
            raise RuntimeError("TranslationContext used after dispose()")
        return self._strings

    def translate(self, key: str) -> str:
        """Translated text, or the key itself when no locale has it."""
        return self._require_strings().get(key, key)

    def as_dict(self) -> dict[str, str]:
        return dict(self._require_strings())

    def dispose(self) -> None:
        self._strings = None


async def get_translation_context(
    locale: str = Path(..., max_length=8),
    db: AsyncSession = Depends(get_db),
) -> AsyncGenerator[TranslationContext, None]:
    """Dependency yielding a request-scoped context, disposed afterwards."""
    context = await TranslationContext.load(db, locale)
    try:
        yield context
    finally:
        context.dispose()
