from utils.compliance import (
    CORRECTION_NOTICE,
    correct_allocations,
    count_violations,
    enforce_consecutive_limit,
    is_worked,
    pad_schedule,
)


def longest_worked_run(scale):
    best = run = 0
    for status in scale:
        run = run + 1 if is_worked(status) else 0
        best = max(best, run)
    return best


def test_non_working_codes():
    for code in ("FOLGA", "FÉRIAS", "INSS", "ATESTADO"):
        assert not is_worked(code)
    for code in ("08-17", "13-22", "FB", "AFAST", "", None):
        assert is_worked(code)


def test_pad_schedule_fills_with_folga():
    assert pad_schedule(["08-17"], 3) == ["08-17", "FOLGA", "FOLGA"]
    assert pad_schedule(["08-17"] * 5, 3) == ["08-17"] * 5


def test_seventh_consecutive_day_becomes_folga():
    corrected, alerts = enforce_consecutive_limit(["08-17"] * 10, "e1", num_days=10)

    assert corrected[:6] == ["08-17"] * 6
    assert corrected[6] == "FOLGA"
    assert corrected[7:] == ["08-17"] * 3
    assert len(alerts) == 1
    assert alerts[0]["colab"] == "e1"
    assert alerts[0]["status"] == "fixed"
    assert alerts[0]["aviso"] == CORRECTION_NOTICE
    assert alerts[0]["dia"] == 7
    assert alerts[0]["data"] is None


def test_whole_month_of_work_is_broken_every_seven_days():
    corrected, alerts = enforce_consecutive_limit(["09-18"] * 30, "e1", num_days=30)

    assert [i for i, s in enumerate(corrected) if s == "FOLGA"] == [6, 13, 20, 27]
    assert len(alerts) == 4
    assert longest_worked_run(corrected) == 6


def test_fb_and_afast_count_as_worked():
    scale = ["08-17", "FB", "AFAST", "08-17", "", "08-17", "08-17"]
    corrected, alerts = enforce_consecutive_limit(scale, "e1", num_days=7)

    assert corrected[6] == "FOLGA"
    assert len(alerts) == 1


def test_rest_codes_reset_the_counter():
    scale = ["08-17"] * 5 + ["INSS"] + ["08-17"] * 5 + ["FÉRIAS"] + ["08-17"] * 5
    corrected, alerts = enforce_consecutive_limit(scale, "e1", num_days=len(scale))

    assert corrected == scale
    assert alerts == []


def test_advisory_dates_use_year_and_month():
    _, alerts = enforce_consecutive_limit(["08-17"] * 28, "e1", num_days=28, year=2026, month=2)

    assert [a["data"] for a in alerts] == ["2026-02-07", "2026-02-14", "2026-02-21", "2026-02-28"]


def test_correct_allocations_pads_and_does_not_mutate_input():
    allocations = {"a": ["08-17"] * 8, "b": ["FOLGA"]}
    original = {k: list(v) for k, v in allocations.items()}

    corrected, alerts = correct_allocations(allocations, num_days=31)

    assert allocations == original
    assert all(len(scale) == 31 for scale in corrected.values())
    assert corrected["b"] == ["FOLGA"] * 31
    assert len(alerts) == 1
    assert alerts[0]["colab"] == "a"


def test_correct_allocations_passes_non_lists_through():
    corrected, alerts = correct_allocations({"a": "broken", "b": None}, num_days=30)

    assert corrected == {"a": "broken", "b": None}
    assert alerts == []


def test_correction_is_idempotent():
    allocations = {"a": ["08-17"] * 30, "b": ["13-22"] * 12 + ["FOLGA"] + ["10-19"] * 17}
    first, first_alerts = correct_allocations(allocations, num_days=30)
    second, second_alerts = correct_allocations(first, num_days=30)

    assert first_alerts
    assert second == first
    assert second_alerts == []


def test_no_run_longer_than_limit_after_correction():
    allocations = {
        "a": ["08-17"] * 30,
        "b": (["08-17"] * 9 + ["FOLGA"]) * 3,
        "c": ["AFAST"] * 20,
    }
    corrected, _ = correct_allocations(allocations, num_days=30)

    for scale in corrected.values():
        assert longest_worked_run(scale) <= 6


def test_count_violations_reports_without_fixing():
    allocations = {"a": ["08-17"] * 14, "b": ["08-17"] * 6 + ["FOLGA"], "c": "x"}

    assert count_violations(allocations) == {"a": 1}
    assert allocations["a"] == ["08-17"] * 14
