from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional, Literal
from datetime import datetime

AnalysisStatus = Literal["pending", "completed", "failed"]


class QuizSubmission(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., max_length=320)
    linkedin_url: Optional[str] = None
    career_moment: str
    mentorship_experience: str
    development_areas: List[str] = Field(..., min_length=1)
    current_challenge: str = Field(..., max_length=2000)
    future_vision: str = Field(..., max_length=2000)
    share_knowledge: str
    personal_life_help: str

    @field_validator("development_areas")
    @classmethod
    def clean_areas(cls, v):
        cleaned = [area.strip() for area in v if area and area.strip()]
        if not cleaned:
            raise ValueError("Pick at least one development area")
        return cleaned


class QuizResultResponse(BaseModel):
    id: str
    name: str
    email: str
    linkedin_url: Optional[str] = None
    career_moment: str
    mentorship_experience: str
    development_areas: List[str] = []
    current_challenge: str
    future_vision: str
    share_knowledge: str
    personal_life_help: str
    analysis_status: AnalysisStatus = "pending"
    ai_analysis: Optional[Dict[str, Any]] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QuizAnalysisResponse(BaseModel):
    """Public results view: the analysis only, never the submitted answers or contact data."""
    id: str
    analysis_status: AnalysisStatus = "pending"
    ai_analysis: Optional[Dict[str, Any]] = None
    processed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
