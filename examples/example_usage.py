"""Example: drive the service layer directly (no Flask).

Controllers stay thin; the DTR rules live in the services.
"""

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from dtr_system.common.logging import setup_logging
from dtr_system.container import build_container
from dtr_system.core.enums import Role
from dtr_system.users.model import Actor


def main():
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(log_level=getattr(settings, "LOG_LEVEL", "INFO"))
    container = build_container(db_config=settings.DB_CONFIG)

    dtr = container.dtr_service.get_or_create(user_id=1, month=3, year=2025)
    container.dtr_service.edit_entry(
        dtr_id=dtr.dtr_id,
        day=3,
        fields={"shifts": [{"in": "8:05 AM", "out": "12:00 PM"}]},
    )
    office = Actor(user_id=99, role=Role.OFFICE, display_name="Registrar", office_id=1)
    container.dtr_service.confirm_entry(dtr_id=dtr.dtr_id, day=3, actor=office)

    report = container.report_service.build_monthly_report(dtr_id=dtr.dtr_id)
    print(report.summary)


if __name__ == "__main__":
    main()
