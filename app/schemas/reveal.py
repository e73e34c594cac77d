"""Pydantic schemas for the reveal (card flip / progressive reading) API."""
from pydantic import BaseModel, Field


class RevealSelectSchema(BaseModel):
    scenario_id: str


class RevealContinueSchema(BaseModel):
    viewport_height: int | None = Field(default=None, ge=0)


class RevealLineSchema(BaseModel):
    index: int
    text: str
    visible: bool


class RevealOutSchema(BaseModel):
    scenario_id: str
    state: str  # "back" | "flipped"
    flipped: bool
    image_ready: bool
    revealed_line_count: int
    total_line_count: int
    complete: bool
    lines: list[RevealLineSchema]
    cue: str | None = None  # audio cue the client should play for this transition
    scroll_to: int | None = None  # raw line index of the first newly revealed line
