import django.db.models.deletion
from django.db import migrations, models

import workspace.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Employee",
            fields=[
                ("id", models.CharField(default=workspace.models.new_id, editable=False, max_length=36, primary_key=True, serialize=False)),
                ("employee_id", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=100)),
                ("position", models.CharField(max_length=100)),
                ("department", models.CharField(max_length=100)),
                ("status", models.CharField(choices=[("Active", "Active"), ("On Leave", "On Leave"), ("Inactive", "Inactive")], default="Active", max_length=20)),
                ("joining_date", models.DateField()),
                ("basic_salary", models.DecimalField(decimal_places=2, max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.CharField(default=workspace.models.new_id, editable=False, max_length=36, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("active", "Active"), ("completed", "Completed"), ("on_hold", "On Hold")], default="active", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Task",
            fields=[
                ("id", models.CharField(default=workspace.models.new_id, editable=False, max_length=36, primary_key=True, serialize=False)),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, null=True)),
                ("priority", models.CharField(choices=[("low", "Low"), ("medium", "Medium"), ("high", "High")], default="medium", max_length=10)),
                ("status", models.CharField(choices=[("backlog", "Backlog"), ("todo", "Todo"), ("in_progress", "In Progress"), ("completed", "Completed")], default="todo", max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("employee", models.ForeignKey(blank=True, db_column="assigned_to", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="tasks", to="workspace.employee", to_field="employee_id")),
                ("project", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tasks", to="workspace.project")),
            ],
        ),
        migrations.CreateModel(
            name="Salary",
            fields=[
                ("id", models.CharField(default=workspace.models.new_id, editable=False, max_length=36, primary_key=True, serialize=False)),
                ("year", models.PositiveSmallIntegerField()),
                ("month", models.PositiveSmallIntegerField()),
                ("bonus", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("deductible", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("employee", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="salaries", to="workspace.employee", to_field="employee_id")),
            ],
            options={
                "indexes": [models.Index(fields=["year", "month"], name="salary_period_idx")],
            },
        ),
        migrations.AddConstraint(
            model_name="salary",
            constraint=models.UniqueConstraint(fields=("employee", "year", "month"), name="unique_salary_per_employee_month"),
        ),
    ]
