"""Tests for request-scoped translation contexts."""

import pytest

from survivor_hub.models.translation import Translations
from survivor_hub.services.i18n import TranslationContext, get_translation_context


@pytest.fixture
async def translations(db_session):
    db_session.add_all(
        [
            Translations(key="nav.home", locale="en", value="Home"),
            Translations(key="nav.report", locale="en", value="Report"),
            Translations(key="nav.home", locale="sw", value="Nyumbani"),
        ]
    )
    await db_session.commit()


@pytest.mark.unit
class TestTranslationContext:
    async def test_locale_over_fallback(self, db_session, translations):
        context = await TranslationContext.load(db_session, "sw")

        assert context.locale == "sw"
        assert context.translate("nav.home") == "Nyumbani"
        assert context.translate("nav.report") == "Report"
        assert context.translate("nav.unknown") == "nav.unknown"

    async def test_unknown_locale_is_english(self, db_session, translations):
        context = await TranslationContext.load(db_session, "fr")

        assert context.locale == "en"
        assert context.as_dict() == {"nav.home": "Home", "nav.report": "Report"}

    async def test_edits_are_seen_by_next_context(self, db_session, translations):
        first = await TranslationContext.load(db_session, "en")
        db_session.add(Translations(key="nav.chat", locale="en", value="Chat"))
        await db_session.commit()

        second = await TranslationContext.load(db_session, "en")

        assert "nav.chat" not in first.as_dict()
        assert second.translate("nav.chat") == "Chat"

    async def test_dispose(self, db_session, translations):
        context = await TranslationContext.load(db_session, "en")

        context.dispose()

        assert context.disposed
        with pytest.raises(RuntimeError):
            context.translate("nav.home")

    async def test_dependency_disposes_after_request(self, db_session, translations):
        dependency = get_translation_context("sw", db_session)

        context = await anext(dependency)
        assert context.translate("nav.home") == "Nyumbani"

        with pytest.raises(StopAsyncIteration):
            await anext(dependency)
        assert context.disposed
