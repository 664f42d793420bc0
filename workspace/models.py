import uuid

from django.db import models


def new_id() -> str:
    return str(uuid.uuid4())


class Employee(models.Model):
    class Status(models.TextChoices):
        ACTIVE   = "Active"
        ON_LEAVE = "On Leave"
        INACTIVE = "Inactive"

    id           = models.CharField(primary_key=True, max_length=36, default=new_id, editable=False)
    employee_id  = models.CharField(max_length=20, unique=True)
    name         = models.CharField(max_length=100)
    position     = models.CharField(max_length=100)
    department   = models.CharField(max_length=100)
    status       = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    joining_date = models.DateField()
    basic_salary = models.DecimalField(max_digits=12, decimal_places=2)
    created_at   = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at   = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.employee_id} {self.name}"


class Project(models.Model):
    class Status(models.TextChoices):
        ACTIVE    = "active"
        COMPLETED = "completed"
        ON_HOLD   = "on_hold"

    id          = models.CharField(primary_key=True, max_length=36, default=new_id, editable=False)
    title       = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    status      = models.CharField(max_length=20, choices=Status.choices, default=Status.ACTIVE)
    created_at  = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at  = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title


class Task(models.Model):
    class Priority(models.TextChoices):
        LOW    = "low"
        MEDIUM = "medium"
        HIGH   = "high"

    class Status(models.TextChoices):
        BACKLOG     = "backlog"
        TODO        = "todo"
        IN_PROGRESS = "in_progress"
        COMPLETED   = "completed"

    id          = models.CharField(primary_key=True, max_length=36, default=new_id, editable=False)
    title       = models.CharField(max_length=200)
    description = models.TextField(null=True, blank=True)
    priority    = models.CharField(max_length=10, choices=Priority.choices, default=Priority.MEDIUM)
    status      = models.CharField(max_length=20, choices=Status.choices, default=Status.TODO)
    project     = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name="tasks"
    )
    # the assignee is referenced by business key, stored in the "assigned_to" column
    employee    = models.ForeignKey(
        Employee,
        to_field="employee_id",
        db_column="assigned_to",
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks"
    )
    created_at  = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at  = models.DateTimeField(auto_now=True)

    @property
    def assigned_to(self):
        return self.employee_id

    def __str__(self):
        return self.title


class Salary(models.Model):
    id         = models.CharField(primary_key=True, max_length=36, default=new_id, editable=False)
    employee   = models.ForeignKey(
        Employee,
        to_field="employee_id",
        on_delete=models.CASCADE,
        related_name="salaries"
    )
    year       = models.PositiveSmallIntegerField()
    month      = models.PositiveSmallIntegerField()
    bonus      = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    deductible = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "year", "month"],
                name="unique_salary_per_employee_month",
            ),
        ]
        indexes = [
            models.Index(fields=["year", "month"], name="salary_period_idx"),
        ]
