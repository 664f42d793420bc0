import logging
import re
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import Prefetch
from django.db.models.functions import Length

from .chatbot import ProjectAssistant
from .exceptions import ConflictError, InvalidInputError, NotFoundError
from .models import Employee, Project, Salary, Task
from .schemas import SalaryRecordSchema

logger = logging.getLogger(__name__)

EMPLOYEE_ID_PREFIX = "EMP"
EMPLOYEE_ID_START = 1001
EMPLOYEE_ID_PATTERN = re.compile(r"EMP(\d+)")
UNASSIGNED = "unassigned"

# fits DecimalField(max_digits=12, decimal_places=2)
MAX_AMOUNT = Decimal("9999999999.99")
CENT = Decimal("0.01")
MAX_YEAR = 9999


def _require(data: dict, fields: list[str], message: str = "Missing required fields"):
    """Raise InvalidInputError unless every field is present and non-empty."""
    missing = [f for f in fields if data.get(f) is None or data.get(f) == ""]
    if missing:
        logger.warning("Rejected request, missing fields: %s", ", ".join(missing))
        raise InvalidInputError(message, details=", ".join(missing))


def _check_amount(name: str, value) -> Decimal:
    """Round a money value to cents and reject it unless 0 <= value <= MAX_AMOUNT."""
    amount = Decimal(value)
    if amount < 0:
        raise InvalidInputError(f"{name} must not be negative")
    # compare before quantizing, huge exponents overflow the decimal context
    if amount > MAX_AMOUNT or amount.quantize(CENT) > MAX_AMOUNT:
        raise InvalidInputError(f"{name} must not exceed {MAX_AMOUNT}")
    return amount.quantize(CENT)


def _check_period(year: int, month: int) -> None:
    if not 1 <= year <= MAX_YEAR:
        raise InvalidInputError(f"year must be between 1 and {MAX_YEAR}")
    if not 1 <= month <= 12:
        raise InvalidInputError("month must be between 1 and 12")


class EmployeeService:
    """Service class for employee records and business-key assignment."""

    @staticmethod
    def generate_employee_id() -> str:
        """
        Return the next business key after the numerically highest stored one.
        Ids are unpadded, so ordering by length first keeps EMP10000 above EMP9999.
        An id that does not parse falls back to the starting number.
        """
        latest = (
            Employee.objects.filter(employee_id__startswith=EMPLOYEE_ID_PREFIX)
            .annotate(id_length=Length("employee_id"))
            .order_by("-id_length", "-employee_id")
            .values_list("employee_id", flat=True)
            .first()
        )

        next_number = EMPLOYEE_ID_START
        if latest:
            match = EMPLOYEE_ID_PATTERN.fullmatch(latest)
            if match:
                next_number = int(match.group(1)) + 1

        return f"{EMPLOYEE_ID_PREFIX}{next_number}"

    @staticmethod
    def list_employees():
        return Employee.objects.order_by("-created_at")

    @staticmethod
    def count_active_employees() -> int:
        return Employee.objects.filter(status=Employee.Status.ACTIVE).count()

    @staticmethod
    def get_employee(pk: str) -> Employee:
        try:
            return Employee.objects.get(pk=pk)
        except Employee.DoesNotExist:
            raise NotFoundError("Employee not found")

    @classmethod
    def create_employee(cls, data: dict) -> Employee:
        _require(data, ["name", "position", "department", "joining_date", "basic_salary"])
        basic_salary = _check_amount("basic_salary", data["basic_salary"])

        employee = Employee(
            employee_id=cls.generate_employee_id(),
            name=data["name"],
            position=data["position"],
            department=data["department"],
            status=data.get("status") or Employee.Status.ACTIVE,
            joining_date=data["joining_date"],
            basic_salary=basic_salary,
        )
        try:
            with transaction.atomic():
                employee.save(force_insert=True)
        except IntegrityError as e:
            # two creations raced for the same generated id
            raise ConflictError("Employee ID already exists", details=str(e)) from e

        logger.info("Created employee %s (%s)", employee.employee_id, employee.name)
        return employee

    @classmethod
    def update_employee(cls, pk: str, data: dict) -> Employee:
        """Replace every editable field of an employee, including its business key."""
        employee = cls.get_employee(pk)
        _require(data, ["employee_id", "name", "position", "department", "joining_date", "basic_salary"])
        basic_salary = _check_amount("basic_salary", data["basic_salary"])

        new_key = data["employee_id"]
        if not EMPLOYEE_ID_PATTERN.fullmatch(new_key):
            raise InvalidInputError("employee_id must look like EMP1001")
        if Employee.objects.filter(employee_id=new_key).exclude(pk=pk).exists():
            raise ConflictError("Employee ID already exists")

        old_key = employee.employee_id
        employee.employee_id = new_key
        employee.name = data["name"]
        employee.position = data["position"]
        employee.department = data["department"]
        employee.status = data.get("status") or employee.status
        employee.joining_date = data["joining_date"]
        employee.basic_salary = basic_salary

        try:
            with transaction.atomic():
                employee.save()
                if old_key != new_key:
                    # references follow the business key
                    Task.objects.filter(employee_id=old_key).update(employee_id=new_key)
                    Salary.objects.filter(employee_id=old_key).update(employee_id=new_key)
        except IntegrityError as e:
            raise ConflictError("Employee ID already exists", details=str(e)) from e

        logger.info("Updated employee %s", employee.employee_id)
        return employee

    @classmethod
    def delete_employee(cls, pk: str) -> None:
        employee = cls.get_employee(pk)
        employee.delete()
        logger.info("Deleted employee %s", employee.employee_id)


class ProjectService:
    """Service class for projects and their nested task lists."""

    @staticmethod
    def _with_tasks():
        # two queries in total: projects, then tasks joined with their assignee
        return Project.objects.prefetch_related(
            Prefetch(
                "tasks",
                queryset=Task.objects.select_related("employee").order_by("-created_at"),
            )
        )

    @classmethod
    def list_projects(cls):
        return cls._with_tasks().order_by("-created_at")

    @classmethod
    def get_project(cls, pk: str) -> Project:
        try:
            return cls._with_tasks().get(pk=pk)
        except Project.DoesNotExist:
            raise NotFoundError("Project not found")

    @staticmethod
    def create_project(data: dict) -> Project:
        _require(data, ["title"], message="Title is required")
        project = Project.objects.create(
            title=data["title"],
            description=data.get("description"),
            status=data.get("status") or Project.Status.ACTIVE,
        )
        logger.info("Created project %s (%s)", project.pk, project.title)
        return project

    @classmethod
    def update_project(cls, pk: str, data: dict) -> Project:
        """Apply only the fields present in ``data``."""
        project = cls.get_project(pk)
        if "title" in data:
            _require(data, ["title"], message="Title is required")
            project.title = data["title"]
        if "description" in data:
            project.description = data["description"]
        if data.get("status"):
            project.status = data["status"]
        project.save()
        logger.info("Updated project %s", project.pk)
        return project

    @classmethod
    def delete_project(cls, pk: str) -> None:
        """Delete a project; its tasks are removed with it."""
        project = cls.get_project(pk)
        project.delete()
        logger.info("Deleted project %s", pk)


class TaskService:
    """Service class for tasks, always read together with project and assignee."""

    @staticmethod
    def _normalize_assignee(value):
        if value is None or value == "" or value == UNASSIGNED:
            return None
        if not Employee.objects.filter(employee_id=value).exists():
            raise InvalidInputError("Assigned employee does not exist", details=value)
        return value

    @staticmethod
    def list_tasks(project_id: str | None = None):
        tasks = Task.objects.select_related("employee", "project")
        if project_id:
            tasks = tasks.filter(project_id=project_id)
        return tasks.order_by("-created_at")

    @staticmethod
    def get_task(pk: str) -> Task:
        try:
            return Task.objects.select_related("employee", "project").get(pk=pk)
        except Task.DoesNotExist:
            raise NotFoundError("Task not found")

    @classmethod
    def create_task(cls, data: dict) -> Task:
        _require(data, ["title", "project_id"], message="Title and project_id are required")
        if not Project.objects.filter(pk=data["project_id"]).exists():
            raise InvalidInputError("Project does not exist", details=data["project_id"])

        task = Task.objects.create(
            title=data["title"],
            description=data.get("description"),
            priority=data.get("priority") or Task.Priority.MEDIUM,
            status=data.get("status") or Task.Status.TODO,
            project_id=data["project_id"],
            employee_id=cls._normalize_assignee(data.get("assigned_to")),
        )
        logger.info("Created task %s in project %s", task.pk, task.project_id)
        return cls.get_task(task.pk)

    @classmethod
    def update_task(cls, pk: str, data: dict) -> Task:
        """Apply only the fields present in ``data``."""
        task = cls.get_task(pk)
        if "title" in data:
            _require(data, ["title"], message="Title is required")
            task.title = data["title"]
        if "description" in data:
            task.description = data["description"]
        if data.get("priority"):
            task.priority = data["priority"]
        if data.get("status"):
            task.status = data["status"]
        if "assigned_to" in data:
            task.employee_id = cls._normalize_assignee(data["assigned_to"])
        task.save()
        logger.info("Updated task %s", task.pk)
        return cls.get_task(pk)

    @classmethod
    def delete_task(cls, pk: str) -> None:
        task = cls.get_task(pk)
        task.delete()
        logger.info("Deleted task %s", pk)


class SalaryService:
    """Service class for the month-keyed salary sheet."""

    @staticmethod
    def _to_amount(value) -> Decimal:
        """Coerce a bonus/deductible value to a Decimal, 0 when it is not a finite number."""
        if value is None or isinstance(value, bool):
            return Decimal(0)
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return Decimal(0)
        if not amount.is_finite():
            return Decimal(0)
        return amount

    @staticmethod
    def get_salary_records(year: int, month: int) -> list[SalaryRecordSchema]:
        """
        One row per employee for the given month, newest employee first.
        Employees without a stored row get a zero bonus/deductible row with an
        empty id; nothing is written.
        """
        _check_period(year, month)
        employees = Employee.objects.order_by("-created_at").only(
            "employee_id", "name", "basic_salary", "created_at"
        )
        stored = {
            salary.employee_id: salary
            for salary in Salary.objects.filter(year=year, month=month)
        }

        records = []
        for employee in employees:
            salary = stored.get(employee.employee_id)
            bonus = salary.bonus if salary else Decimal(0)
            deductible = salary.deductible if salary else Decimal(0)
            records.append(SalaryRecordSchema(
                id=salary.id if salary else "",
                employee_id=employee.employee_id,
                name=employee.name,
                basic_salary=employee.basic_salary,
                bonus=bonus,
                deductible=deductible,
                total=employee.basic_salary + bonus - deductible,
                month=month,
                year=year,
            ))
        return records

    @classmethod
    def update_salary_record(cls, data: dict) -> Salary:
        """
        Create or update the salary row for (employee_id, year, month).
        The natural key is the only lookup key; the unique constraint on it
        backs up the ORM's select-then-write.
        """
        _require(data, ["employee_id", "year", "month"])
        employee_id, year, month = data["employee_id"], data["year"], data["month"]
        _check_period(year, month)

        bonus = _check_amount("bonus", cls._to_amount(data.get("bonus")))
        deductible = _check_amount("deductible", cls._to_amount(data.get("deductible")))

        if not Employee.objects.filter(employee_id=employee_id).exists():
            raise NotFoundError("Employee not found")

        salary, created = Salary.objects.update_or_create(
            employee_id=employee_id,
            year=year,
            month=month,
            defaults={"bonus": bonus, "deductible": deductible},
        )
        logger.info(
            "%s salary for %s %04d-%02d: bonus=%s deductible=%s",
            "Created" if created else "Updated", employee_id, year, month, bonus, deductible,
        )
        return salary


class ChatService:
    """Answers assistant questions from the current projects and tasks."""

    @staticmethod
    def reply(message: str) -> str:
        projects = list(Project.objects.order_by("-created_at"))
        tasks = list(Task.objects.select_related("employee").order_by("-created_at"))
        return ProjectAssistant(projects, tasks).respond(message)
