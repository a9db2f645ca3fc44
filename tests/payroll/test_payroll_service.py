from datetime import datetime, timedelta, timezone

import pytest

from src.shift_payroll.shift_payroll.core.enums import EntryType, PayType
from src.shift_payroll.shift_payroll.organization.model import Employee, PositionConfig, PositionPermissions
from src.shift_payroll.shift_payroll.payroll.model import PayrollConfig
from src.shift_payroll.shift_payroll.payroll.rounding import round_hours, round_money
from src.shift_payroll.shift_payroll.payroll.service import PayrollService
from src.shift_payroll.shift_payroll.worklogs.model import WorkLog

T0 = datetime(2026, 3, 5, 8, 0, tzinfo=timezone.utc)
POSITIONS = [
    PositionConfig(name="Operator", permissions=PositionPermissions(max_shift_duration_minutes=480)),
    PositionConfig(name="Long", permissions=PositionPermissions(max_shift_duration_minutes=600)),
    PositionConfig(name="Plain"),
    PositionConfig(name="Staffed", payroll=PayrollConfig(type=PayType.HOURLY, rate=100)),
]

_seq = iter(range(1, 10_000))


def work(minutes, *, night=False, machine_id=None, fine=None, bonus=None, entry_type=EntryType.WORK):
    n = next(_seq)
    return WorkLog(
        id=f"log-{n}",
        user_id="u1",
        date=f"2026-03-{n % 28 + 1:02d}",
        entry_type=entry_type,
        machine_id=machine_id,
        check_in=T0,
        check_out=T0 + timedelta(minutes=minutes),
        duration_minutes=minutes,
        is_night_shift=night,
        fine=fine,
        bonus=bonus,
    )


def sick():
    n = next(_seq)
    return WorkLog(id=f"abs-{n}", user_id="u1", date=f"2026-03-{n % 28 + 1:02d}", entry_type=EntryType.SICK)


def employee(config=None, position="Operator"):
    return Employee(id="u1", name="Anna", position=position, payroll=config)


@pytest.fixture
def service():
    return PayrollService()


def test_rounding_helpers_round_half_up():
    assert round_money(187.5) == 188
    assert round_money(187.49) == 187
    assert round_hours(125) == 2.1
    assert round_hours(9) == 0.2


def test_hourly_with_overtime(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=500, overtime_multiplier=1.5))
    result = service.compute_monthly_payroll(user, [work(600)], POSITIONS)

    assert result.regular_pay == 4000
    assert result.overtime_pay == 1500
    assert result.total_salary == 5500
    assert result.details.regular_hours == 8.0
    assert result.details.overtime_hours == 2.0


def test_shift_rate_pays_flat_plus_implied_hourly_overtime(service):
    user = employee(PayrollConfig(type=PayType.SHIFT, rate=1000, overtime_multiplier=1.5))
    result = service.compute_monthly_payroll(user, [work(540)], POSITIONS)

    assert result.regular_pay == 1000
    assert result.overtime_pay == 188
    assert result.total_salary == 1188


def test_shift_rate_pays_full_rate_for_short_shifts(service):
    user = employee(PayrollConfig(type=PayType.SHIFT, rate=1000))
    result = service.compute_monthly_payroll(user, [work(60), work(120)], POSITIONS)
    assert result.regular_pay == 2000
    assert result.overtime_pay == 0


def test_fixed_salary_settles_overtime_on_monthly_hours(service):
    user = employee(PayrollConfig(type=PayType.FIXED, rate=60000, overtime_multiplier=1.5))
    result = service.compute_monthly_payroll(user, [work(540), work(540)], POSITIONS)

    assert result.regular_pay == 60000
    assert result.overtime_pay == 1125
    assert result.details.regular_hours == 16.0
    assert result.details.overtime_hours == 2.0


def test_night_bonus_is_flat_per_session(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=0, night_shift_bonus=200))
    result = service.compute_monthly_payroll(user, [work(30, night=True), work(700)], POSITIONS)

    assert result.night_shift_pay == 200
    assert result.details.night_shift_count == 1


def test_sick_days_are_paid_per_day(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=500, sick_leave_rate=300))
    result = service.compute_monthly_payroll(user, [sick(), sick(), sick()], POSITIONS)

    assert result.sick_leave_pay == 900
    assert result.details.sick_days == 3
    assert result.regular_pay == 0
    assert result.overtime_pay == 0
    assert result.total_salary == 900


def test_fine_reduces_total_only(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=500))
    result = service.compute_monthly_payroll(user, [work(480, fine=500)], POSITIONS)

    assert result.regular_pay == 4000
    assert result.fines == 500
    assert result.total_salary == 3500


def test_bonus_counts_on_absence_entries_too(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=0))
    marker = sick().evolve(bonus=250)
    assert service.compute_monthly_payroll(user, [marker], POSITIONS).bonuses == 250


def test_total_never_goes_negative(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=10))
    result = service.compute_monthly_payroll(user, [work(60, fine=10_000)], POSITIONS)
    assert result.total_salary == 0
    assert result.fines == 10_000


def test_machine_rate_overrides_base_rate(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=500, machine_rates={"m1": 800}))
    result = service.compute_monthly_payroll(user, [work(480, machine_id="m1"), work(60, machine_id="m2")], POSITIONS)
    assert result.regular_pay == 6400 + 500


def test_standard_shift_follows_position_limit(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=60), position="Long")
    result = service.compute_monthly_payroll(user, [work(600)], POSITIONS)
    assert result.overtime_pay == 0
    assert result.regular_pay == 600

    plain = employee(PayrollConfig(type=PayType.HOURLY, rate=60), position="Plain")
    assert service.compute_monthly_payroll(plain, [work(600)], POSITIONS).details.overtime_hours == 2.0


def test_config_resolution_order():
    staffed = employee(position="Staffed")
    assert PayrollService.resolve_config(staffed, POSITIONS[3]).rate == 100

    override = PayrollConfig(type=PayType.SHIFT, rate=900)
    assert PayrollService.resolve_config(employee(override, position="Staffed"), POSITIONS[3]) is override

    fallback = PayrollService.resolve_config(employee(position="Plain"), POSITIONS[2])
    assert (fallback.type, fallback.rate, fallback.overtime_multiplier) == (PayType.HOURLY, 0, 1.5)


def test_unknown_entry_types_and_open_sessions_are_not_paid(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=500))
    unknown = work(480, fine=100, entry_type="OVERTIME_REQUEST")
    running = work(0).evolve(check_out=None)

    result = service.compute_monthly_payroll(user, [unknown, running, work(60)], POSITIONS)

    assert result.fines == 0
    assert result.regular_pay == 500
    assert result.details.regular_hours == 1.0


def test_durations_beyond_a_day_are_taken_literally(service):
    user = employee(PayrollConfig(type=PayType.HOURLY, rate=60, overtime_multiplier=1.0))
    result = service.compute_monthly_payroll(user, [work(2000)], POSITIONS)
    assert result.regular_pay + result.overtime_pay == 2000


def test_month_report_covers_every_employee(store, fixed_now):
    store.ledger.upsert([
        WorkLog(
            id="w-1",
            user_id="u1",
            date="2026-03-02",
            entry_type=EntryType.WORK,
            check_in=fixed_now,
            check_out=fixed_now + timedelta(minutes=600),
            duration_minutes=600,
        ),
        WorkLog(id="w-2", user_id="u1", date="2026-02-27", entry_type=EntryType.WORK, duration_minutes=600),
    ])

    rows = PayrollService(store).build_month_report("2026-03")

    assert [row.user_id for row in rows][0] == "u1"
    assert rows[0].breakdown.total_salary == 5500
    assert {row.user_id for row in rows} == {"u1", "u2", "u3", "admin"}
