"""Example: drive the services directly, without Flask.

Uses the local JSON store so it runs without MySQL. Controllers are thin; the
rules live in the services.
"""

import tempfile

from src.villa_staff.villa_staff.container import build_container
from src.villa_staff.villa_staff.core.enums import Period, Role
from src.villa_staff.villa_staff.users.model import User


def main():
    with tempfile.TemporaryDirectory() as store_dir:
        container = build_container(db_config={}, store_backend="local", local_store_dir=store_dir)
        container.users_repo.save(User(id="admin", name="Admin User", role=Role.ADMIN))
        container.users_repo.save(User(id="maria", name="Maria Schmidt", role=Role.STAFF))

        ledger = container.points_ledger
        for _ in range(4):
            entry = ledger.assign_points("maria", [{"rule_id": "late", "quantity": 1}], "admin")
            print(entry[0].points, "x", entry[0].multiplier)

        print(ledger.get_user_total("maria", Period.THIS_WEEK).as_dict())


if __name__ == "__main__":
    main()
