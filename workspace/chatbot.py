"""Keyword-driven project assistant used by the chat endpoint."""

HELP_TEXT = """I can help you with the following:
- List all projects
- Show active projects
- List all tasks
- Show tasks by status (todo, in progress, completed)"""

FALLBACK_TEXT = "I'm not sure I understand. Try asking for 'help' to see what I can do!"

GREETING = "Hello! I'm your project assistant. How can I help you today?"


class ProjectAssistant:
    """Answers canned questions about the given projects and tasks."""

    def __init__(self, projects, tasks):
        self.projects = list(projects)
        self.tasks = list(tasks)

    def respond(self, query: str) -> str:
        text = (query or "").lower().strip()
        if not text:
            return GREETING

        if "project" in text:
            answer = self._project_answer(text)
            if answer:
                return answer

        if "task" in text:
            answer = self._task_answer(text)
            if answer:
                return answer

        if "help" in text:
            return HELP_TEXT

        return FALLBACK_TEXT

    def _project_answer(self, text: str) -> str | None:
        if "list" in text or "all" in text:
            lines = [f"- {p.title} ({p.status})" for p in self.projects]
            return "Here are your projects:\n" + "\n".join(lines)
        if "active" in text:
            active = [p for p in self.projects if p.status == "active"]
            return self._titled(f"You have {len(active)} active projects:", active)
        return None

    def _task_answer(self, text: str) -> str | None:
        if "list" in text or "all" in text:
            lines = [self._describe_task(t) for t in self.tasks]
            return "Here are all your tasks:\n" + "\n".join(lines)

        for keywords, status, label in (
            (("todo", "to do"), "todo", "tasks in To Do"),
            (("in progress",), "in_progress", "tasks in progress"),
            (("completed",), "completed", "completed tasks"),
        ):
            if any(k in text for k in keywords):
                matching = [t for t in self.tasks if t.status == status]
                return self._titled(f"You have {len(matching)} {label}:", matching)
        return None

    @staticmethod
    def _describe_task(task) -> str:
        line = f"- {task.title} ({task.status}, Priority: {task.priority})"
        if task.employee is not None:
            line += f" - Assigned to: {task.employee.name}"
        return line

    @staticmethod
    def _titled(heading: str, items) -> str:
        return "\n".join([heading] + [f"- {item.title}" for item in items])
