from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, Field


class SubjectDetails(BaseModel):
    year: str
    semester: str
    subject: str


class Message(BaseModel):
    role: Literal["user", "system"] = Field(..., description="Who produced the message.")
    content: str = Field(..., min_length=1)
    subject_details: SubjectDetails = Field(
        ..., description="Subject context of the session at the time the message was sent."
    )


class ChatSession(BaseModel):
    id: str
    user_id: str
    year: str
    semester: str
    subject: str
    regulation: str
    unit: str
    created_at: datetime
    document_references: List[str] = Field(
        default_factory=list,
        description="Locators of the course material bound to the session at creation.",
    )
    messages: List[Message] = Field(default_factory=list)

    def subject_details(self) -> SubjectDetails:
        return SubjectDetails(year=self.year, semester=self.semester, subject=self.subject)


class CourseMaterial(BaseModel):
    id: str
    year: str
    semester: str
    subject: str
    regulation: str = ""
    units: str = ""
    files: List[str] = Field(default_factory=list, description="Uploaded file names.")


class StartChatRequest(BaseModel):
    year: str = ""
    semester: str = ""
    subject: str = ""
    regulation: str = ""
    unit: str = ""
    user_id: str = ""


class SessionStarted(BaseModel):
    session_id: str
    subject: str
    regulation: str
    created_at: datetime


class AskRequest(BaseModel):
    session_id: str = ""
    question: str = ""


class AskResponse(BaseModel):
    response: str = Field(..., description="Generated answer or the policy refusal.")
    refused: bool = Field(
        default=False,
        description="True when the question was rejected by the content policy.",
    )


class SessionHistory(BaseModel):
    session_id: str
    user_id: str
    created_at: datetime
    document_references: List[str] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)
