from pydantic import BaseModel


class RoomSummary(BaseModel):
    room_key: str
    member_count: int


class RoomListResponse(BaseModel):
    rooms: list[RoomSummary]
    total: int


class RoomDetailsResponse(BaseModel):
    room_key: str
    member_count: int
    capacity: int
    is_full: bool


class HealthResponse(BaseModel):
    status: str
    rooms: int
