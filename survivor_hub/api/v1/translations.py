"""
Public translation bundles and single strings for the interface.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from survivor_hub.schemas.translation import TranslatedStringResponse, TranslationBundleResponse
from survivor_hub.services.i18n import TranslationContext, get_translation_context

router = APIRouter(prefix="/translations", tags=["translations"])


@router.get("/{locale}", response_model=TranslationBundleResponse)
async def get_translations(
    context: Annotated[TranslationContext, Depends(get_translation_context)],
) -> TranslationBundleResponse:
    """
    All strings for a locale.

    Keys missing in the locale fall back to English; unknown locales get
    English.
    """
    return TranslationBundleResponse(locale=context.locale, translations=context.as_dict())


@router.get("/{locale}/{key}", response_model=TranslatedStringResponse)
async def get_translation(
    key: Annotated[str, Path(max_length=150, description="Translation key, e.g. nav.home")],
    context: Annotated[TranslationContext, Depends(get_translation_context)],
) -> TranslatedStringResponse:
    """A single string, resolved like the bundle."""
    return TranslatedStringResponse(locale=context.locale, key=key, value=context.translate(key))
