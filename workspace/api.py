import logging
from datetime import date

from django.http import HttpRequest
from ninja import NinjaAPI, Query, Swagger
from ninja.errors import HttpError, ValidationError as RequestValidationError

from .exceptions import ServiceError
from .services import ChatService, EmployeeService, ProjectService, SalaryService, TaskService
from .schemas import (
    ChatInSchema, ChatReplySchema, EmployeeCountSchema, EmployeeInSchema, EmployeeSchema,
    EmployeeUpdateSchema, MessageSchema, ProjectInSchema, ProjectSchema, SalaryRecordSchema,
    SalaryUpdateSchema, SuccessSchema, TaskInSchema, TaskSchema, TaskUpdateSchema
)

logger = logging.getLogger(__name__)

api = NinjaAPI(title="HRDesk API", docs=Swagger(settings={"persistAuthorization": True}))


def _error(request: HttpRequest, status: int, error: str, details: str | None = None):
    body = {"error": error}
    if details:
        body["details"] = details
    return api.create_response(request, body, status=status)


@api.exception_handler(ServiceError)
def handle_service_error(request: HttpRequest, exc: ServiceError):
    return _error(request, exc.status_code, exc.message, exc.details)


@api.exception_handler(RequestValidationError)
def handle_request_validation_error(request: HttpRequest, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors
    )
    logger.warning("Invalid request to %s: %s", request.path, details)
    return _error(request, 400, "Invalid request", details)


@api.exception_handler(HttpError)
def handle_http_error(request: HttpRequest, exc: HttpError):
    logger.warning("Rejected request to %s: %s", request.path, exc)
    return _error(request, exc.status_code, str(exc))


@api.exception_handler(Exception)
def handle_unexpected_error(request: HttpRequest, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return _error(request, 500, "Internal server error", str(exc))


# Employees

@api.get("/employees", response=list[EmployeeSchema])
def list_employees(request: HttpRequest):
    return EmployeeService.list_employees()


@api.post("/employees", response={201: EmployeeSchema})
def create_employee(request: HttpRequest, payload: EmployeeInSchema):
    return 201, EmployeeService.create_employee(payload.model_dump())


@api.get("/employees/count", response=EmployeeCountSchema)
def count_active_employees(request: HttpRequest):
    """Number of employees whose status is Active."""
    return {"count": EmployeeService.count_active_employees()}


@api.get("/employees/{employee_pk}", response=EmployeeSchema)
def get_employee(request: HttpRequest, employee_pk: str):
    return EmployeeService.get_employee(employee_pk)


@api.put("/employees/{employee_pk}", response=EmployeeSchema)
def update_employee(request: HttpRequest, employee_pk: str, payload: EmployeeUpdateSchema):
    return EmployeeService.update_employee(employee_pk, payload.model_dump())


@api.delete("/employees/{employee_pk}", response=SuccessSchema)
def delete_employee(request: HttpRequest, employee_pk: str):
    EmployeeService.delete_employee(employee_pk)
    return {"success": True}


# Projects

@api.get("/projects", response=list[ProjectSchema])
def list_projects(request: HttpRequest):
    """Projects with their tasks and each task's assignee, newest first."""
    return ProjectService.list_projects()


@api.post("/projects", response={201: ProjectSchema})
def create_project(request: HttpRequest, payload: ProjectInSchema):
    return 201, ProjectService.create_project(payload.model_dump())


@api.get("/projects/{project_pk}", response=ProjectSchema)
def get_project(request: HttpRequest, project_pk: str):
    return ProjectService.get_project(project_pk)


@api.put("/projects/{project_pk}", response=ProjectSchema)
def update_project(request: HttpRequest, project_pk: str, payload: ProjectInSchema):
    ProjectService.update_project(project_pk, payload.model_dump(exclude_unset=True))
    return ProjectService.get_project(project_pk)


@api.delete("/projects/{project_pk}", response=SuccessSchema)
def delete_project(request: HttpRequest, project_pk: str):
    """Delete a project together with all of its tasks."""
    ProjectService.delete_project(project_pk)
    return {"success": True}


# Tasks

@api.get("/tasks", response=list[TaskSchema])
def list_tasks(request: HttpRequest, project_id: str | None = Query(None, alias="projectId")):
    return TaskService.list_tasks(project_id)


@api.post("/tasks", response={201: TaskSchema})
def create_task(request: HttpRequest, payload: TaskInSchema):
    return 201, TaskService.create_task(payload.model_dump())


@api.get("/tasks/{task_pk}", response=TaskSchema)
def get_task(request: HttpRequest, task_pk: str):
    return TaskService.get_task(task_pk)


@api.put("/tasks/{task_pk}", response=TaskSchema)
def update_task(request: HttpRequest, task_pk: str, payload: TaskUpdateSchema):
    return TaskService.update_task(task_pk, payload.model_dump(exclude_unset=True))


@api.delete("/tasks/{task_pk}", response=MessageSchema)
def delete_task(request: HttpRequest, task_pk: str):
    TaskService.delete_task(task_pk)
    return {"message": "Task deleted successfully"}


# Salaries

@api.get("/salaries", response=list[SalaryRecordSchema])
def get_salary_records(request: HttpRequest, year: int | None = None, month: int | None = None):
    """
    Salary sheet for one month, one row per employee.
    Year and month default to the current ones.
    """
    today = date.today()
    return SalaryService.get_salary_records(
        today.year if year is None else year,
        today.month if month is None else month,
    )


@api.put("/salaries", response=SuccessSchema)
def update_salary_record(request: HttpRequest, payload: SalaryUpdateSchema):
    SalaryService.update_salary_record(payload.model_dump())
    return {"success": True}


# Assistant

@api.post("/chat", response=ChatReplySchema)
def chat(request: HttpRequest, payload: ChatInSchema):
    return {"reply": ChatService.reply(payload.message)}
