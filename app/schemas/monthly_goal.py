"""
Monthly Goal Schemas
====================

Pydantic schemas for the monthly goal endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.monthly_goal import DEFAULT_WEEKDAYS, GoalStatus
from app.schemas.task import TaskApiResponse
from app.utils.validators import validate_daily_time, validate_timezone


class RepeatConfig(BaseModel):
    """
    Which days of the week a goal produces a task.

    Weekdays use 0=Sunday … 6=Saturday. With ``includeWeekends`` false,
    Saturday and Sunday are skipped even if listed.
    """

    weekdays: list[int] = Field(default_factory=lambda: list(DEFAULT_WEEKDAYS))
    includeWeekends: bool = False

    @field_validator("weekdays")
    @classmethod
    def validate_weekdays(cls, v: list[int]) -> list[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))


class MonthlyGoalCreate(BaseModel):
    """Request schema for creating a monthly goal."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    daily_time: str = Field(alias="dailyTime")
    timezone: str = "UTC"
    repeat_config: RepeatConfig = Field(default_factory=RepeatConfig, alias="repeatConfig")

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("daily_time")
    @classmethod
    def check_daily_time(cls, v: str) -> str:
        return validate_daily_time(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        return validate_timezone(v)


class MonthlyGoalUpdate(BaseModel):
    """Request schema for partially updating a monthly goal."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    daily_time: Optional[str] = Field(None, alias="dailyTime")
    timezone: Optional[str] = None
    repeat_config: Optional[RepeatConfig] = Field(None, alias="repeatConfig")
    status: Optional[GoalStatus] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v

    @field_validator("daily_time")
    @classmethod
    def check_daily_time(cls, v: Optional[str]) -> Optional[str]:
        return validate_daily_time(v) if v is not None else v

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: Optional[str]) -> Optional[str]:
        return validate_timezone(v) if v is not None else v


# =============================================================================
# Response Schemas
# =============================================================================

class GoalStats(BaseModel):
    completedDays: int = 0
    totalDays: int = 0
    completionRate: int = 0
    lastStatsUpdate: Optional[str] = None


class MonthlyGoalApiResponse(BaseModel):
    id: str
    userId: str
    title: str
    description: str
    dailyTime: str
    startDate: str
    endDate: str
    timezone: str
    status: str
    repeatConfig: RepeatConfig
    stats: GoalStats
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class GoalProgress(BaseModel):
    completed: int
    total: int
    rate: int


class MonthlyGoalDetail(BaseModel):
    goal: MonthlyGoalApiResponse
    tasks: list[TaskApiResponse]
    progress: GoalProgress


class MonthlyGoalResponse(BaseModel):
    success: bool = True
    data: MonthlyGoalApiResponse
    message: Optional[str] = None


class MonthlyGoalListResponse(BaseModel):
    success: bool = True
    data: list[MonthlyGoalApiResponse]


class MonthlyGoalDetailResponse(BaseModel):
    success: bool = True
    data: MonthlyGoalDetail


class GoalReportItem(BaseModel):
    id: str
    title: str
    completedDays: int
    totalDays: int
    completionRate: int
    status: str


class ProgressReport(BaseModel):
    month: int
    year: int
    totalGoals: int
    activeGoals: int
    totalTasks: int
    goals: list[GoalReportItem]


class ProgressReportResponse(BaseModel):
    success: bool = True
    data: ProgressReport
