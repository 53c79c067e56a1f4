from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BookOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    description: Optional[str] = ""
    category: str
    filename: str
    originalname: str
    rating: float
    created_at: datetime


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class RatingUpdate(BaseModel):
    rating: float


class UploadResult(BaseModel):
    message: str
    id: int


class MessageOut(BaseModel):
    message: str
