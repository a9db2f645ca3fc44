"""Example: drive the shift engine directly (no UI layer).

Starts a session on the first free machine, stops it and prints the month's payroll table.
"""

from src.shift_payroll.shift_payroll.main import create_engine


def main():
    container = create_engine()
    store = container.store
    operator = next((u for u in store.users if u.position == "Operator"), None)
    if operator is None:
        print("No operator found; run scripts/seed_db.py first")
        return

    selection = container.shift_manager.assign_slot_equipment(operator.id)
    log = container.shift_manager.start_session(operator.id, 1, selection[1])
    print("started", log.id, "on", log.machine_id)
    container.shift_manager.stop_session(operator.id, 1)

    for row in container.payroll_service.build_month_report(container.settings.local_month(container.clock.now())):
        print(row.name, row.breakdown.to_dict())


if __name__ == "__main__":
    main()
