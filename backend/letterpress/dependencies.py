"""
FastAPI dependency providers.

Process-wide singletons so that every request shares one render semaphore
and one resolver lock table. Tests replace them through
``app.dependency_overrides``.
"""

from functools import lru_cache

from letterpress.config import get_settings
from letterpress.services.artifact_store import SupabaseArtifactStore
from letterpress.services.letter_pipeline import LetterPipeline
from letterpress.services.order_source import ShopifyOrderSource
from letterpress.services.renderer import PdfRenderer
from letterpress.services.storage import LetterStorage
from letterpress.services.template_resolver import TemplateResolver
from letterpress.services.template_store import SupabaseTemplateStore


@lru_cache(maxsize=1)
def get_artifact_store() -> SupabaseArtifactStore:
    return SupabaseArtifactStore()


@lru_cache(maxsize=1)
def get_template_resolver() -> TemplateResolver:
    return TemplateResolver(SupabaseTemplateStore())


@lru_cache(maxsize=1)
def get_storage() -> LetterStorage:
    return LetterStorage(get_settings().storage)


@lru_cache(maxsize=1)
def get_renderer() -> PdfRenderer:
    return PdfRenderer(get_settings().renderer)


@lru_cache(maxsize=1)
def get_pipeline() -> LetterPipeline:
    return LetterPipeline(
        template_resolver=get_template_resolver(),
        artifact_store=get_artifact_store(),
        storage=get_storage(),
        renderer=get_renderer(),
    )


def get_order_source() -> ShopifyOrderSource:
    settings = get_settings()
    return ShopifyOrderSource(
        access_token=settings.shopify_admin_access_token,
        api_version=settings.shopify_api_version,
    )
