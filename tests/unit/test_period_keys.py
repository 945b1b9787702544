"""Tests for period key derivation."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.domain.habit import Frequency
from src.services.period_keys import derive_period_key, week_of_year


@pytest.mark.unit
class TestDerivePeriodKey:
    """Tests for derive_period_key."""

    def test_daily_key_is_iso_date(self):
        assert derive_period_key(Frequency.DAILY, datetime(2026, 10, 18, 9, 30, tzinfo=UTC)) == "2026-10-18"

    def test_weekly_key_counts_weeks_from_january_first(self):
        assert derive_period_key(Frequency.WEEKLY, datetime(2026, 10, 18, 9, 30, tzinfo=UTC)) == "2026-W42"

    def test_monthly_key_zero_pads_month(self):
        assert derive_period_key(Frequency.MONTHLY, datetime(2026, 3, 5, tzinfo=UTC)) == "2026-03"

    def test_accepts_frequency_as_plain_string(self):
        assert derive_period_key("monthly", datetime(2026, 11, 1, tzinfo=UTC)) == "2026-11"

    def test_unknown_frequency_raises(self):
        with pytest.raises(ValueError):
            derive_period_key("yearly", datetime(2026, 1, 1, tzinfo=UTC))

    def test_naive_datetime_is_read_as_utc(self):
        assert derive_period_key(Frequency.DAILY, datetime(2026, 1, 1, 0, 0)) == "2026-01-01"

    def test_aware_datetime_is_converted_to_utc(self):
        eastern = timezone(timedelta(hours=-5))
        late_evening = datetime(2026, 10, 18, 23, 30, tzinfo=eastern)

        assert derive_period_key(Frequency.DAILY, late_evening) == "2026-10-19"

    def test_defaults_to_current_time(self):
        before = datetime.now(UTC).date().isoformat()
        key = derive_period_key(Frequency.DAILY)
        after = datetime.now(UTC).date().isoformat()

        assert key in {before, after}

    @pytest.mark.parametrize("frequency", list(Frequency))
    def test_same_bucket_gives_same_key(self, frequency):
        morning = datetime(2026, 10, 1, 0, 0, tzinfo=UTC)
        evening = datetime(2026, 10, 1, 23, 59, 59, tzinfo=UTC)

        assert derive_period_key(frequency, morning) == derive_period_key(frequency, evening)

    def test_week_key_stable_across_days_of_same_week(self):
        keys = {derive_period_key(Frequency.WEEKLY, datetime(2026, 1, day, 12, tzinfo=UTC)) for day in range(1, 8)}

        assert keys == {"2026-W01"}

    def test_month_key_stable_across_month(self):
        keys = {derive_period_key(Frequency.MONTHLY, datetime(2026, 2, day, tzinfo=UTC)) for day in range(1, 29)}

        assert keys == {"2026-02"}


@pytest.mark.unit
class TestWeekOfYear:
    """Tests for the non-ISO week numbering."""

    def test_first_seven_days_are_week_one(self):
        assert week_of_year(datetime(2026, 1, 1)) == 1
        assert week_of_year(datetime(2026, 1, 7, 23, 59)) == 1

    def test_eighth_day_starts_week_two(self):
        assert week_of_year(datetime(2026, 1, 8)) == 2

    def test_last_day_of_year_is_week_53(self):
        assert week_of_year(datetime(2026, 12, 31)) == 53
        assert week_of_year(datetime(2024, 12, 31)) == 53

    def test_no_continuity_across_year_boundary(self):
        new_years_eve = derive_period_key(Frequency.WEEKLY, datetime(2026, 12, 31, tzinfo=UTC))
        new_years_day = derive_period_key(Frequency.WEEKLY, datetime(2027, 1, 1, tzinfo=UTC))

        assert new_years_eve == "2026-W53"
        assert new_years_day == "2027-W01"
