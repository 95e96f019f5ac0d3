"""
Caching for medicine catalog lookups.

The category list is read on every search screen and changes only when an
administrator edits the catalog, so it is cached and invalidated by signals.
"""
from django.conf import settings
from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from .models import Medicine

logger = logging.getLogger('backend.catalog')

CATEGORY_LIST_CACHE_KEY = 'medicine_categories'


def get_cached_categories():
    """Return the sorted distinct category list, reading through the cache"""
    categories = cache.get(CATEGORY_LIST_CACHE_KEY)
    if categories is not None:
        logger.debug("Cache hit for medicine categories")
        return categories

    categories = list(
        Medicine.objects.order_by('category').values_list('category', flat=True).distinct()
    )
    cache.set(CATEGORY_LIST_CACHE_KEY, categories, settings.CATEGORY_CACHE_TTL)
    logger.debug(f"Cached {len(categories)} medicine categories")
    return categories


def invalidate_category_cache():
    cache.delete(CATEGORY_LIST_CACHE_KEY)


@receiver(post_save, sender=Medicine)
def medicine_post_save(sender, instance, **kwargs):
    """Invalidate category cache when a medicine is saved"""
    invalidate_category_cache()
    logger.debug(f"Category cache invalidated after saving medicine {instance.pk}")


@receiver(post_delete, sender=Medicine)
def medicine_post_delete(sender, instance, **kwargs):
    """Invalidate category cache when a medicine is deleted"""
    invalidate_category_cache()
    logger.debug(f"Category cache invalidated after deleting medicine {instance.pk}")
