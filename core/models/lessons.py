"""Lesson catalog -- static lookup data, not a content system."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Lesson(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    xp_reward: int = Field(ge=0)
    body: str = ""


LESSONS: tuple[Lesson, ...] = (
    Lesson(
        id=1,
        title="Intro to Investing",
        xp_reward=25,
        body="What is an asset? How markets work in simple terms.",
    ),
    Lesson(
        id=2,
        title="Risk Management",
        xp_reward=40,
        body="Position sizing, stop losses, and keeping your edge.",
    ),
    Lesson(
        id=3,
        title="Reading Charts",
        xp_reward=35,
        body="Price action basics and trend identification.",
    ),
)


def get_lesson(lesson_id: int, catalog: tuple[Lesson, ...] = LESSONS) -> Lesson | None:
    for lesson in catalog:
        if lesson.id == lesson_id:
            return lesson
    return None
