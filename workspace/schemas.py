from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal

from ninja import Schema

EmployeeStatus = Literal["Active", "On Leave", "Inactive"]
ProjectStatus = Literal["active", "completed", "on_hold"]
TaskPriority = Literal["low", "medium", "high"]
TaskStatus = Literal["backlog", "todo", "in_progress", "completed"]


class ErrorSchema(Schema):
    error: str
    details: str | None = None


class SuccessSchema(Schema):
    success: bool


class MessageSchema(Schema):
    message: str


class EmployeeInSchema(Schema):
    """Payload for creating an employee; presence is checked by the service."""
    name: str | None = None
    position: str | None = None
    department: str | None = None
    status: EmployeeStatus | None = None
    joining_date: date | None = None
    basic_salary: Decimal | None = None


class EmployeeUpdateSchema(EmployeeInSchema):
    """Full-record replacement payload, including the business key."""
    employee_id: str | None = None


class EmployeeSchema(Schema):
    id: str
    employee_id: str
    name: str
    position: str
    department: str
    status: str
    joining_date: date
    basic_salary: float
    created_at: datetime
    updated_at: datetime


class EmployeeCountSchema(Schema):
    count: int


class ProjectInSchema(Schema):
    title: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None


class ProjectSummarySchema(Schema):
    id: str
    title: str
    status: str


class TaskInSchema(Schema):
    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    project_id: str | None = None
    assigned_to: str | None = None  # "unassigned" clears the assignee


class TaskUpdateSchema(Schema):
    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    status: TaskStatus | None = None
    assigned_to: str | None = None


class ProjectTaskSchema(Schema):
    """Task as nested under its project."""
    id: str
    title: str
    description: str | None = None
    priority: str
    status: str
    project_id: str
    assigned_to: str | None = None
    employee: EmployeeSchema | None = None
    created_at: datetime
    updated_at: datetime


class TaskSchema(ProjectTaskSchema):
    project: ProjectSummarySchema


class ProjectSchema(Schema):
    id: str
    title: str
    description: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime
    tasks: list[ProjectTaskSchema]


class SalaryRecordSchema(Schema):
    """One row of the monthly salary sheet; ``id`` is empty until first saved."""
    id: str
    employee_id: str
    name: str
    basic_salary: float
    bonus: float
    deductible: float
    total: float
    month: int
    year: int


class SalaryUpdateSchema(Schema):
    employee_id: str | None = None
    year: int | None = None
    month: int | None = None
    # coerced to numbers by the service, non-numeric input counts as 0
    bonus: Any = 0
    deductible: Any = 0


class ChatInSchema(Schema):
    message: str


class ChatReplySchema(Schema):
    reply: str
