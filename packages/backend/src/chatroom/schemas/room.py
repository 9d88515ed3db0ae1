"""Pydantic schemas for the HTTP view of the chat room."""

from datetime import datetime

from pydantic import BaseModel


class ParticipantRead(BaseModel):
    username: str
    typing: bool
    transport: str
    connected_at: datetime


class RoomRead(BaseModel):
    connections: int
    participants: list[ParticipantRead]
    typing: list[str]


class HealthRead(BaseModel):
    status: str
    server: str
    version: str
    connections: int
