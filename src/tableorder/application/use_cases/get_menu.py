from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from tableorder.application.dto.responses import MenuResponse
from tableorder.application.mappers.menu_mapper import to_menu_response
from tableorder.application.ports.cache import KeyValueStore
from tableorder.application.ports.repositories import MenuRepository
from tableorder.application.use_cases.lookups import load_menu
from tableorder.domain.common.ids import RestaurantId

logger = logging.getLogger(__name__)


def menu_cache_key(restaurant_id: RestaurantId) -> str:
    return f"menu:{restaurant_id}"


class GetMenu:
    def __init__(
        self,
        repository: MenuRepository,
        cache: KeyValueStore,
        ttl_seconds: int = 60,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    def _cache_get(self, key: str) -> str | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("menu_cache_read_failed", extra={"cache_key": key}, exc_info=True)
            return None

    def _cache_set(self, key: str, value: str) -> None:
        try:
            self._cache.set(key, value, ttl_seconds=self._ttl_seconds)
        except Exception:
            logger.warning("menu_cache_write_failed", extra={"cache_key": key}, exc_info=True)

    def execute(self, restaurant_id: RestaurantId) -> MenuResponse:
        key = menu_cache_key(restaurant_id)
        payload = self._cache_get(key)
        if payload:
            try:
                return MenuResponse.model_validate_json(payload)
            except PydanticValidationError:
                logger.warning("menu_cache_payload_invalid", extra={"cache_key": key})

        response = to_menu_response(load_menu(self._repository, restaurant_id))
        self._cache_set(key, response.model_dump_json())
        return response
