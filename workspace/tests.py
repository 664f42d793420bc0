from datetime import date
from decimal import Decimal
from io import StringIO
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase
from django.test.client import Client

from .chatbot import FALLBACK_TEXT, HELP_TEXT, ProjectAssistant
from .models import Employee, Project, Salary, Task
from .services import EmployeeService, ProjectService, SalaryService


class HRDeskAPITestBase(TestCase):
    """Base test class with common setup and helper methods."""

    def setUp(self):
        """Set up common test data"""
        self.client = Client()

        self.alice = Employee.objects.create(
            employee_id="EMP1001", name="Alice Johnson", position="Senior Software Engineer",
            department="Engineering", joining_date=date(2022, 1, 15), basic_salary=Decimal("120000"),
        )
        self.bob = Employee.objects.create(
            employee_id="EMP1002", name="Bob Smith", position="Product Manager",
            department="Product", status=Employee.Status.ON_LEAVE,
            joining_date=date(2021, 9, 1), basic_salary=Decimal("110000"),
        )

        self.website = Project.objects.create(title="Website Redesign", description="Refresh the site")
        self.wireframes = Task.objects.create(
            title="Draft wireframes", project=self.website, employee=self.alice, status=Task.Status.IN_PROGRESS
        )

    def employee_payload(self, **overrides):
        """Helper to build a valid employee body."""
        payload = {
            "name": "Carol Lee",
            "position": "HR Specialist",
            "department": "Human Resources",
            "joining_date": "2020-06-10",
            "basic_salary": 75000,
        }
        payload.update(overrides)
        return payload

    def post_json(self, url, payload):
        return self.client.post(url, payload, content_type="application/json")

    def put_json(self, url, payload):
        return self.client.put(url, payload, content_type="application/json")


class EmployeeIdGenerationTest(TestCase):
    """Test business-key assignment for new employees."""

    def create(self, employee_id):
        return Employee.objects.create(
            employee_id=employee_id, name="Someone", position="Engineer",
            department="Engineering", joining_date=date(2024, 1, 1), basic_salary=1000,
        )

    def test_first_id_when_no_employees(self):
        self.assertEqual(EmployeeService.generate_employee_id(), "EMP1001")

    def test_sequence_of_creations_is_increasing(self):
        """Each generated id exceeds every previous one and matches EMP<digits>."""
        previous = 0
        for _ in range(5):
            employee = EmployeeService.create_employee({
                "name": "Worker", "position": "Engineer", "department": "Engineering",
                "joining_date": date(2024, 1, 1), "basic_salary": Decimal("1000"),
            })
            self.assertRegex(employee.employee_id, r"^EMP\d+$")
            number = int(employee.employee_id[3:])
            self.assertGreater(number, previous)
            previous = number
        self.assertEqual(previous, 1005)

    def test_numeric_order_beats_lexicographic_order(self):
        self.create("EMP9999")
        self.create("EMP10000")
        self.assertEqual(EmployeeService.generate_employee_id(), "EMP10001")

    def test_unparseable_id_falls_back_to_start(self):
        self.create("EMPLOYEE-X")
        self.assertEqual(EmployeeService.generate_employee_id(), "EMP1001")


class EmployeeAPITest(HRDeskAPITestBase):
    """Test the employee endpoints."""

    def test_list_is_newest_first(self):
        response = self.client.get("/api/employees")
        self.assertEqual(response.status_code, 200)
        ids = [row["employee_id"] for row in response.json()]
        self.assertEqual(ids, ["EMP1002", "EMP1001"])

    def test_create_assigns_next_id_and_default_status(self):
        response = self.post_json("/api/employees", self.employee_payload())
        self.assertEqual(response.status_code, 201)

        data = response.json()
        self.assertEqual(data["employee_id"], "EMP1003")
        self.assertEqual(data["status"], "Active")
        self.assertEqual(data["joining_date"], "2020-06-10")
        self.assertEqual(data["basic_salary"], 75000)
        self.assertTrue(data["id"])

    def test_create_with_missing_fields(self):
        payload = self.employee_payload()
        del payload["department"]
        response = self.post_json("/api/employees", payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing required fields")
        self.assertEqual(Employee.objects.count(), 2)

    def test_create_rejects_negative_salary(self):
        response = self.post_json("/api/employees", self.employee_payload(basic_salary=-1))
        self.assertEqual(response.status_code, 400)

    def test_create_rejects_salary_beyond_column_limit(self):
        for too_big in ("1e20", "10000000000", "9999999999.999"):
            response = self.post_json("/api/employees", self.employee_payload(basic_salary=too_big))
            self.assertEqual(response.status_code, 400, too_big)
        self.assertEqual(Employee.objects.count(), 2)

        response = self.client.get("/api/employees")
        self.assertEqual(response.status_code, 200)

    def test_create_accepts_largest_salary(self):
        response = self.post_json("/api/employees", self.employee_payload(basic_salary="9999999999.99"))
        self.assertEqual(response.status_code, 201)

    def test_update_rejects_salary_beyond_column_limit(self):
        payload = self.employee_payload(employee_id="EMP1001", basic_salary="1e20")
        response = self.put_json(f"/api/employees/{self.alice.pk}", payload)

        self.assertEqual(response.status_code, 400)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.basic_salary, Decimal("120000"))

    def test_create_with_taken_generated_id(self):
        """A generated id that is already stored surfaces as a conflict."""
        with patch.object(EmployeeService, "generate_employee_id", return_value="EMP1001"):
            response = self.post_json("/api/employees", self.employee_payload())

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Employee ID already exists")
        self.assertEqual(Employee.objects.count(), 2)

    def test_create_rejects_unknown_status(self):
        response = self.post_json("/api/employees", self.employee_payload(status="Retired"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid request")

    def test_get_and_not_found(self):
        response = self.client.get(f"/api/employees/{self.alice.pk}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Alice Johnson")

        response = self.client.get("/api/employees/does-not-exist")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Employee not found")

    def test_update_replaces_record(self):
        payload = self.employee_payload(employee_id="EMP1001", name="Alice J.", status="Inactive")
        response = self.put_json(f"/api/employees/{self.alice.pk}", payload)

        self.assertEqual(response.status_code, 200)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.name, "Alice J.")
        self.assertEqual(self.alice.status, "Inactive")
        self.assertEqual(self.alice.basic_salary, Decimal("75000"))

    def test_update_requires_employee_id(self):
        response = self.put_json(f"/api/employees/{self.alice.pk}", self.employee_payload())
        self.assertEqual(response.status_code, 400)

    def test_update_with_duplicate_employee_id(self):
        payload = self.employee_payload(employee_id="EMP1002")
        response = self.put_json(f"/api/employees/{self.alice.pk}", payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Employee ID already exists")
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.employee_id, "EMP1001")

    def test_update_unknown_employee(self):
        payload = self.employee_payload(employee_id="EMP2000")
        response = self.put_json("/api/employees/missing", payload)
        self.assertEqual(response.status_code, 404)

    def test_renaming_business_key_moves_references(self):
        SalaryService.update_salary_record({"employee_id": "EMP1001", "year": 2024, "month": 6, "bonus": 10})
        payload = self.employee_payload(employee_id="EMP5000")
        response = self.put_json(f"/api/employees/{self.alice.pk}", payload)

        self.assertEqual(response.status_code, 200)
        self.wireframes.refresh_from_db()
        self.assertEqual(self.wireframes.assigned_to, "EMP5000")
        self.assertTrue(Salary.objects.filter(employee_id="EMP5000", year=2024, month=6).exists())

    def test_delete_employee_without_tasks(self):
        response = self.client.delete(f"/api/employees/{self.bob.pk}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})
        self.assertFalse(Employee.objects.filter(pk=self.bob.pk).exists())

    def test_delete_employee_unassigns_tasks(self):
        response = self.client.delete(f"/api/employees/{self.alice.pk}")
        self.assertEqual(response.status_code, 200)
        self.wireframes.refresh_from_db()
        self.assertIsNone(self.wireframes.assigned_to)

    def test_active_count(self):
        response = self.client.get("/api/employees/count")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"count": 1})


class ProjectAPITest(HRDeskAPITestBase):
    """Test the project endpoints and their nested task lists."""

    def test_list_includes_tasks_and_assignees(self):
        Project.objects.create(title="Payroll Migration", status=Project.Status.ON_HOLD)
        response = self.client.get("/api/projects")
        self.assertEqual(response.status_code, 200)

        data = response.json()
        self.assertEqual([p["title"] for p in data], ["Payroll Migration", "Website Redesign"])
        website = data[1]
        self.assertEqual(len(website["tasks"]), 1)
        task = website["tasks"][0]
        self.assertEqual(task["assigned_to"], "EMP1001")
        self.assertEqual(task["employee"]["name"], "Alice Johnson")
        self.assertEqual(data[0]["tasks"], [])

    def test_nested_fetch_uses_fixed_number_of_queries(self):
        for i in range(3):
            project = Project.objects.create(title=f"Project {i}")
            Task.objects.create(title=f"Task {i}", project=project, employee=self.bob)

        with self.assertNumQueries(2):
            projects = list(ProjectService.list_projects())
            names = [t.employee.name for p in projects for t in p.tasks.all() if t.employee]
        self.assertEqual(len(names), 4)

    def test_create_defaults_to_active(self):
        response = self.post_json("/api/projects", {"title": "Office Move"})
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["status"], "active")
        self.assertIsNone(data["description"])
        self.assertEqual(data["tasks"], [])

    def test_create_requires_title(self):
        response = self.post_json("/api/projects", {"description": "No title"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Title is required")

    def test_malformed_body_uses_error_shape(self):
        response = self.client.post("/api/projects", "{not json", content_type="application/json")

        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertIn("error", data)
        self.assertNotIn("detail", data)

    def test_update_patches_given_fields_only(self):
        response = self.put_json(f"/api/projects/{self.website.pk}", {"status": "completed"})
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["title"], "Website Redesign")
        self.assertEqual(data["description"], "Refresh the site")

    def test_get_unknown_project(self):
        response = self.client.get("/api/projects/missing")
        self.assertEqual(response.status_code, 404)

    def test_delete_cascades_to_tasks(self):
        response = self.client.delete(f"/api/projects/{self.website.pk}")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Project.objects.filter(pk=self.website.pk).exists())
        self.assertFalse(Task.objects.filter(pk=self.wireframes.pk).exists())
        self.assertTrue(Employee.objects.filter(pk=self.alice.pk).exists())


class TaskAPITest(HRDeskAPITestBase):
    """Test the task endpoints."""

    def test_create_with_defaults(self):
        response = self.post_json("/api/tasks", {"title": "Write copy", "project_id": self.website.pk})
        self.assertEqual(response.status_code, 201)

        data = response.json()
        self.assertEqual(data["priority"], "medium")
        self.assertEqual(data["status"], "todo")
        self.assertIsNone(data["assigned_to"])
        self.assertEqual(data["project"]["title"], "Website Redesign")

    def test_unassigned_sentinel_is_stored_as_null(self):
        response = self.post_json("/api/tasks", {
            "title": "Pick fonts", "project_id": self.website.pk, "assigned_to": "unassigned",
        })
        self.assertEqual(response.status_code, 201)

        task = Task.objects.get(pk=response.json()["id"])
        self.assertIsNone(task.employee_id)

    def test_create_requires_title_and_project(self):
        response = self.post_json("/api/tasks", {"title": "Orphan"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Title and project_id are required")

    def test_create_with_unknown_references(self):
        response = self.post_json("/api/tasks", {"title": "Lost", "project_id": "missing"})
        self.assertEqual(response.status_code, 400)

        response = self.post_json("/api/tasks", {
            "title": "Lost", "project_id": self.website.pk, "assigned_to": "EMP9999",
        })
        self.assertEqual(response.status_code, 400)

    def test_create_rejects_unknown_priority(self):
        response = self.post_json("/api/tasks", {
            "title": "Urgent", "project_id": self.website.pk, "priority": "critical",
        })
        self.assertEqual(response.status_code, 400)

    def test_list_filters_by_project(self):
        other = Project.objects.create(title="Payroll Migration")
        Task.objects.create(title="Export payslips", project=other)

        response = self.client.get("/api/tasks")
        self.assertEqual(len(response.json()), 2)

        response = self.client.get("/api/tasks", {"projectId": other.pk})
        titles = [t["title"] for t in response.json()]
        self.assertEqual(titles, ["Export payslips"])

    def test_update_is_partial_and_normalizes_sentinel(self):
        response = self.put_json(f"/api/tasks/{self.wireframes.pk}", {
            "status": "completed", "assigned_to": "unassigned",
        })
        self.assertEqual(response.status_code, 200)

        data = response.json()
        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["title"], "Draft wireframes")
        self.assertIsNone(data["assigned_to"])
        self.assertIsNone(data["employee"])

    def test_update_reassigns(self):
        response = self.put_json(f"/api/tasks/{self.wireframes.pk}", {"assigned_to": "EMP1002"})
        self.assertEqual(response.json()["employee"]["name"], "Bob Smith")

    def test_get_and_delete(self):
        response = self.client.get(f"/api/tasks/{self.wireframes.pk}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["employee"]["employee_id"], "EMP1001")

        response = self.client.delete(f"/api/tasks/{self.wireframes.pk}")
        self.assertEqual(response.json(), {"message": "Task deleted successfully"})

        response = self.client.get(f"/api/tasks/{self.wireframes.pk}")
        self.assertEqual(response.status_code, 404)


class SalaryServiceTest(HRDeskAPITestBase):
    """Test the lazily materialized monthly salary sheet."""

    def find_row(self, rows, employee_id):
        return next(row for row in rows if row.employee_id == employee_id)

    def test_missing_rows_are_synthesized(self):
        rows = SalaryService.get_salary_records(2024, 6)

        self.assertEqual(len(rows), Employee.objects.count())
        self.assertEqual([r.employee_id for r in rows], ["EMP1002", "EMP1001"])
        for row in rows:
            self.assertEqual(row.id, "")
            self.assertEqual(row.bonus, 0)
            self.assertEqual(row.deductible, 0)
            self.assertEqual(row.total, row.basic_salary)
        self.assertFalse(Salary.objects.exists())

    def test_reads_are_idempotent(self):
        SalaryService.update_salary_record({"employee_id": "EMP1002", "year": 2024, "month": 6, "bonus": 5})
        first = SalaryService.get_salary_records(2024, 6)
        second = SalaryService.get_salary_records(2024, 6)
        self.assertEqual([r.model_dump() for r in first], [r.model_dump() for r in second])

    def test_upsert_creates_then_updates_same_row(self):
        SalaryService.update_salary_record({
            "employee_id": "EMP1001", "year": 2024, "month": 6, "bonus": 500, "deductible": 100,
        })
        row = self.find_row(SalaryService.get_salary_records(2024, 6), "EMP1001")
        self.assertEqual(row.bonus, 500)
        self.assertEqual(row.deductible, 100)
        self.assertEqual(row.total, 120400)
        self.assertNotEqual(row.id, "")

        SalaryService.update_salary_record({"employee_id": "EMP1001", "year": 2024, "month": 6, "bonus": 600})
        self.assertEqual(Salary.objects.filter(employee_id="EMP1001", year=2024, month=6).count(), 1)

        updated = self.find_row(SalaryService.get_salary_records(2024, 6), "EMP1001")
        self.assertEqual(updated.id, row.id)
        self.assertEqual(updated.bonus, 600)
        self.assertEqual(updated.deductible, 0)

    def test_other_months_are_untouched(self):
        SalaryService.update_salary_record({"employee_id": "EMP1001", "year": 2024, "month": 6, "bonus": 500})
        row = self.find_row(SalaryService.get_salary_records(2024, 7), "EMP1001")
        self.assertEqual(row.id, "")
        self.assertEqual(row.bonus, 0)

    def test_non_numeric_amounts_count_as_zero(self):
        salary = SalaryService.update_salary_record({
            "employee_id": "EMP1001", "year": 2024, "month": 6, "bonus": "lots", "deductible": "12.5",
        })
        self.assertEqual(salary.bonus, 0)
        self.assertEqual(salary.deductible, Decimal("12.5"))


class SalaryAPITest(HRDeskAPITestBase):
    """Test the salary endpoints."""

    def test_put_then_get(self):
        response = self.put_json("/api/salaries", {
            "employee_id": "EMP1002", "year": 2024, "month": 6, "bonus": 1000, "deductible": 250,
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"success": True})

        response = self.client.get("/api/salaries", {"year": 2024, "month": 6})
        rows = {row["employee_id"]: row for row in response.json()}
        self.assertEqual(rows["EMP1002"]["total"], 110750)
        self.assertEqual(rows["EMP1001"]["id"], "")

    def test_defaults_to_current_month(self):
        today = date.today()
        response = self.client.get("/api/salaries")
        self.assertEqual(response.status_code, 200)
        for row in response.json():
            self.assertEqual(row["year"], today.year)
            self.assertEqual(row["month"], today.month)

    def test_put_validation(self):
        response = self.put_json("/api/salaries", {"employee_id": "EMP1001", "year": 2024})
        self.assertEqual(response.status_code, 400)

        response = self.put_json("/api/salaries", {"employee_id": "EMP1001", "year": 2024, "month": 13})
        self.assertEqual(response.status_code, 400)

        response = self.put_json("/api/salaries", {
            "employee_id": "EMP1001", "year": 2024, "month": 6, "deductible": -5,
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Salary.objects.exists())

    def test_put_for_unknown_employee(self):
        response = self.put_json("/api/salaries", {"employee_id": "EMP4242", "year": 2024, "month": 6})
        self.assertEqual(response.status_code, 404)

    def test_put_rejects_year_out_of_range(self):
        for year in (-1, 0, 10000):
            response = self.put_json("/api/salaries", {"employee_id": "EMP1001", "year": year, "month": 6})
            self.assertEqual(response.status_code, 400, year)
            self.assertIn("year", response.json()["error"])
        self.assertFalse(Salary.objects.exists())

    def test_put_rejects_amount_beyond_column_limit(self):
        response = self.put_json("/api/salaries", {
            "employee_id": "EMP1001", "year": 2024, "month": 6, "bonus": "1e20",
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Salary.objects.exists())

        response = self.client.get("/api/salaries", {"year": 2024, "month": 6})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), Employee.objects.count())

    def test_get_rejects_period_out_of_range(self):
        for params in ({"year": 2024, "month": 0}, {"year": 2024, "month": 13}, {"year": 0, "month": 6}):
            response = self.client.get("/api/salaries", params)
            self.assertEqual(response.status_code, 400, params)
            self.assertIn("error", response.json())


class ProjectAssistantTest(SimpleTestCase):
    """Test the keyword responder on in-memory projects and tasks."""

    def setUp(self):
        alice = SimpleNamespace(name="Alice Johnson")
        self.assistant = ProjectAssistant(
            projects=[
                SimpleNamespace(title="Website Redesign", status="active"),
                SimpleNamespace(title="Payroll Migration", status="on_hold"),
            ],
            tasks=[
                SimpleNamespace(title="Draft wireframes", status="in_progress", priority="high", employee=alice),
                SimpleNamespace(title="Set up CI", status="todo", priority="medium", employee=None),
                SimpleNamespace(title="Kickoff", status="completed", priority="low", employee=None),
            ],
        )

    def test_list_projects(self):
        reply = self.assistant.respond("List all projects")
        self.assertIn("- Website Redesign (active)", reply)
        self.assertIn("- Payroll Migration (on_hold)", reply)

    def test_active_projects(self):
        reply = self.assistant.respond("which projects are active?")
        self.assertTrue(reply.startswith("You have 1 active projects:"))
        self.assertNotIn("Payroll Migration", reply)

    def test_list_tasks_mentions_assignee(self):
        reply = self.assistant.respond("show me all tasks")
        self.assertIn("- Draft wireframes (in_progress, Priority: high) - Assigned to: Alice Johnson", reply)
        self.assertIn("- Set up CI (todo, Priority: medium)\n", reply)

    def test_tasks_by_status(self):
        self.assertIn("Set up CI", self.assistant.respond("tasks to do"))
        self.assertTrue(self.assistant.respond("tasks in progress").startswith("You have 1 tasks in progress"))
        self.assertIn("Kickoff", self.assistant.respond("completed tasks"))

    def test_help_and_fallback(self):
        self.assertEqual(self.assistant.respond("help"), HELP_TEXT)
        self.assertEqual(self.assistant.respond("what's the weather"), FALLBACK_TEXT)


class ChatAPITest(HRDeskAPITestBase):
    """Test the assistant endpoint against stored data."""

    def test_chat_reads_current_tasks(self):
        response = self.post_json("/api/chat", {"message": "list tasks"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("Assigned to: Alice Johnson", response.json()["reply"])


class LoadSeedDataCommandTest(TestCase):
    """Test the demo seed loader."""

    seed_dir = Path(__file__).resolve().parent.parent / "seed_data"

    def test_loads_all_seed_files(self):
        out = StringIO()
        call_command("load_seed_data", "--dir", str(self.seed_dir), stdout=out)

        self.assertEqual(Employee.objects.count(), 8)
        self.assertEqual(Project.objects.count(), 2)
        self.assertEqual(Task.objects.filter(employee__isnull=True).count(), 1)
        self.assertEqual(Salary.objects.filter(year=2024, month=6).count(), 2)
        self.assertEqual(EmployeeService.generate_employee_id(), "EMP1009")
        self.assertIn("Loaded 8 employees", out.getvalue())

    def test_truncate_replaces_existing_rows(self):
        Project.objects.create(title="Scratch project")
        call_command("load_seed_data", "--truncate", "--dir", str(self.seed_dir), stdout=StringIO())
        self.assertFalse(Project.objects.filter(title="Scratch project").exists())

    def test_missing_directory(self):
        with self.assertRaises(CommandError):
            call_command("load_seed_data", "--dir", str(self.seed_dir / "nope"), stdout=StringIO())
