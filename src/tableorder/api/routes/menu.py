from __future__ import annotations

from fastapi import APIRouter, Depends

from tableorder.api.dependencies import get_menu_use_case
from tableorder.application.dto.responses import MenuResponse
from tableorder.application.use_cases.get_menu import GetMenu
from tableorder.domain.common.ids import RestaurantId

router = APIRouter()


@router.get("/v1/restaurants/{restaurant_id}/menu", response_model=MenuResponse)
def get_menu(
    restaurant_id: str,
    use_case: GetMenu = Depends(get_menu_use_case),
) -> MenuResponse:
    return use_case.execute(RestaurantId(restaurant_id))
