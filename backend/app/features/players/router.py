"""Player directory endpoints."""

from typing import List

from fastapi import APIRouter

from .dependencies import PlayerServiceDep
from .schemas import PlayerResponse

router = APIRouter(prefix="/players", tags=["players"])


@router.get("/all", response_model=List[PlayerResponse])
async def get_all_players(service: PlayerServiceDep) -> List[PlayerResponse]:
    """List every known player."""
    return await service.get_all()


@router.get("/{osu_id}", response_model=PlayerResponse)
async def get_player(osu_id: int, service: PlayerServiceDep) -> PlayerResponse:
    """Get a player by osu! user id; 404 when unknown."""
    return await service.get_by_osu_id(osu_id)


@router.get("/{osu_id}/id", response_model=int)
async def get_player_id(osu_id: int, service: PlayerServiceDep) -> int:
    """Map an osu! user id to the internal player id."""
    return await service.get_id_by_osu_id(osu_id)


@router.get("/{player_id}/osuid", response_model=int)
async def get_player_osu_id(player_id: int, service: PlayerServiceDep) -> int:
    """Map an internal player id to the osu! user id."""
    return await service.get_osu_id_by_id(player_id)
