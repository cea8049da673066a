from .errors import NotFoundError
from .models.email_records import EmailTemplate
from .tables import EMAIL_TEMPLATES_TABLE


class TemplateStore:
    def __init__(self, db):
        self.db = db

    def get_template(self, template_id: str) -> EmailTemplate:
        row = self.db.get_one(EMAIL_TEMPLATES_TABLE, "id", template_id)
        if not row:
            raise NotFoundError(f"Template {template_id} not found")
        return EmailTemplate.from_row(row)
