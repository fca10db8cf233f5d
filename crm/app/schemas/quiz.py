from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

QuestionType = Literal["text", "radio", "image_grid", "email", "phone", "name", "contact"]


class QuizOption(BaseModel):
    id: str
    label: str = ""
    value: str = ""
    score: int = 0
    image_url: str | None = None
    icon: str | None = None


class QuestionBase(BaseModel):
    id: str
    question_text: str = ""
    description: str | None = None
    required: bool = True
    weight: int = 5
    group: str | None = None


class TextQuestion(QuestionBase):
    type: Literal["text"] = "text"
    placeholder: str | None = None
    max_length: int | None = None
    multiline: bool | None = None


class RadioQuestion(QuestionBase):
    type: Literal["radio"] = "radio"
    options: list[QuizOption] = Field(default_factory=list)
    layout: Literal["vertical", "horizontal", "cards"] | None = None


class ImageGridQuestion(QuestionBase):
    type: Literal["image_grid"] = "image_grid"
    options: list[QuizOption] = Field(default_factory=list)
    columns: Literal[2, 3, 4] | None = None


class EmailQuestion(QuestionBase):
    type: Literal["email"] = "email"
    placeholder: str | None = None


class PhoneQuestion(QuestionBase):
    type: Literal["phone"] = "phone"
    placeholder: str | None = None
    country_code: str | None = None


class NameQuestion(QuestionBase):
    type: Literal["name"] = "name"
    first_name_placeholder: str | None = None
    last_name_placeholder: str | None = None


class ContactQuestion(QuestionBase):
    type: Literal["contact"] = "contact"
    first_name_placeholder: str | None = None
    last_name_placeholder: str | None = None
    email_placeholder: str | None = None
    phone_placeholder: str | None = None
    country_code: str | None = None


QuizQuestion = Annotated[
    Union[
        TextQuestion,
        RadioQuestion,
        ImageGridQuestion,
        EmailQuestion,
        PhoneQuestion,
        NameQuestion,
        ContactQuestion,
    ],
    Field(discriminator="type"),
]
ChoiceQuestion = Union[RadioQuestion, ImageGridQuestion]


class QuizSettings(BaseModel):
    show_progress_bar: bool = True
    thank_you_message: str = "Thank you for completing our quiz! We'll be in touch soon."
    redirect_url: str | None = None


class QuizTracking(BaseModel):
    model_config = ConfigDict(extra="allow")

    facebook_pixel_id: str | None = None
    tiktok_pixel_id: str | None = None


class QuizWelcomeScreen(BaseModel):
    enabled: bool = False
    title: str | None = None
    description: str | None = None
    button_text: str | None = None


class QuizConfig(BaseModel):
    version: Literal[1] = 1
    questions: list[QuizQuestion] = Field(default_factory=list)
    settings: QuizSettings = Field(default_factory=QuizSettings)
    tracking: QuizTracking = Field(default_factory=QuizTracking)
    welcome_screen: QuizWelcomeScreen = Field(default_factory=QuizWelcomeScreen)


class QuizResponse(BaseModel):
    question_id: str
    question_text: str | None = None
    question_type: QuestionType | None = None
    answer: Any = None
    selected_option_id: str | None = None


class ExtractedContactInfo(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None


# ─── API payloads ───────────────────────────────────────


class QuizBase(BaseModel):
    title: str
    description: str | None = None
    is_published: bool = False
    is_active: bool = True


class QuizCreate(QuizBase):
    slug: str = Field(min_length=1, max_length=128, pattern=r"^[a-z0-9][a-z0-9-]*$")
    config: QuizConfig = Field(default_factory=QuizConfig)


class QuizUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    is_published: bool | None = None
    is_active: bool | None = None
    config: QuizConfig | None = None


class QuizRead(QuizBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    slug: str
    config: QuizConfig
    created_at: datetime
    updated_at: datetime


class QuizSubmission(BaseModel):
    responses: list[QuizResponse]
    started_at: datetime | None = None
    completed_at: datetime | None = None


class QuizSubmissionResult(BaseModel):
    lead_id: uuid.UUID
    score: int
    merged: bool = False
