from fastapi import APIRouter, Request

from logging_config import get_logger
from relay import SignalingRelay
from schemas.rooms import RoomDetailsResponse, RoomListResponse, RoomSummary

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_relay(request: Request) -> SignalingRelay:
    return request.app.state.relay


@rooms_router.get("/", response_model=RoomListResponse)
async def list_rooms(request: Request):
    """List rooms that currently have at least one member."""
    counts = get_relay(request).registry.room_counts()
    logger.debug(f"Listing {len(counts)} active rooms")
    return RoomListResponse(
        rooms=[RoomSummary(room_key=key, member_count=count) for key, count in sorted(counts.items())],
        total=len(counts),
    )


@rooms_router.get("/{room_key}", response_model=RoomDetailsResponse)
async def get_room_details(room_key: str, request: Request):
    """
    Get occupancy for a room key.

    Rooms are created by the first join and vanish with the last member, so an
    unknown key is reported as an empty room rather than a 404.
    """
    relay = get_relay(request)
    member_count = relay.member_count(room_key)
    capacity = relay.registry.capacity
    logger.info(f"Room details retrieved for {room_key}: {member_count}/{capacity} members")
    return RoomDetailsResponse(
        room_key=room_key,
        member_count=member_count,
        capacity=capacity,
        is_full=member_count >= capacity,
    )
