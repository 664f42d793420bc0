import json
from pathlib import Path
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from workspace.models import Employee, Project, Task, Salary


class Command(BaseCommand):
    help = "Load demo seed data from JSON files in seed_data/."

    def add_arguments(self, parser):
        parser.add_argument(
            "--truncate",
            action="store_true",
            help="Delete existing data before loading.",
        )
        parser.add_argument(
            "--dir",
            default="seed_data",
            help="Directory containing JSON files (default: seed_data).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        base_dir = Path(options["dir"]).resolve()

        # 1. optional clean
        if options["truncate"]:
            self.stdout.write("Deleting existing records…")
            Salary.objects.all().delete()
            Task.objects.all().delete()
            Project.objects.all().delete()
            Employee.objects.all().delete()

        # 2. load json helpers
        def load_json(name):
            path = base_dir / f"{name}.json"
            if not path.exists():
                raise CommandError(f"{path} not found")
            with open(path) as f:
                return json.load(f)

        employees = load_json("employees")
        projects  = load_json("projects")
        tasks     = load_json("tasks")
        salaries  = load_json("salaries")

        # 3. create records (bulk for speed)
        Employee.objects.bulk_create(
            [
                Employee(
                    id=e["id"],
                    employee_id=e["employee_id"],
                    name=e["name"],
                    position=e["position"],
                    department=e["department"],
                    status=e.get("status", Employee.Status.ACTIVE),
                    joining_date=e["joining_date"],
                    basic_salary=e["basic_salary"],
                )
                for e in employees
            ],
            ignore_conflicts=True,
        )
        Project.objects.bulk_create(
            [
                Project(
                    id=p["id"],
                    title=p["title"],
                    description=p.get("description"),
                    status=p.get("status", Project.Status.ACTIVE),
                )
                for p in projects
            ],
            ignore_conflicts=True,
        )
        Task.objects.bulk_create(
            [
                Task(
                    id=t["id"],
                    project_id=t["project_id"],
                    title=t["title"],
                    description=t.get("description"),
                    priority=t.get("priority", Task.Priority.MEDIUM),
                    status=t.get("status", Task.Status.TODO),
                    employee_id=t.get("assigned_to"),
                )
                for t in tasks
            ],
            ignore_conflicts=True,
        )
        Salary.objects.bulk_create(
            [
                Salary(
                    employee_id=s["employee_id"],
                    year=s["year"],
                    month=s["month"],
                    bonus=s.get("bonus", 0),
                    deductible=s.get("deductible", 0),
                )
                for s in salaries
            ],
            ignore_conflicts=True,
        )

        self.stdout.write(self.style.SUCCESS(
            f"✅  Loaded {len(employees)} employees, {len(projects)} projects, "
            f"{len(tasks)} tasks and {len(salaries)} salary records"
        ))
