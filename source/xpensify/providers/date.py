"""This module provides centralized date-related utilities."""

from datetime import date, datetime, timedelta, timezone


class DateProvider:
    """Provides centralized constants and methods for date handling.

    This class centralizes date-related formats and logic to ensure
    consistency across the application.
    """

    DATE_FORMAT = "%Y-%m-%d"

    @staticmethod
    def today() -> date:
        """Returns the current date in UTC.

        Returns:
            Today's date.
        """
        return datetime.now(timezone.utc).date()

    @staticmethod
    def trailing_window(end: date, days: int) -> tuple[date, date]:
        """Returns the inclusive bounds of a window of `days` days ending at `end`.

        Args:
            end: The last day of the window.
            days: The length of the window in days.

        Returns:
            A tuple with the first and last day of the window.
        """
        return end - timedelta(days=days - 1), end

    @staticmethod
    def months_between(start: date, end: date) -> int:
        """Counts whole calendar months from `start` to `end`.

        Args:
            start: The starting date.
            end: The ending date.

        Returns:
            The number of months, negative when `end` precedes `start`.
        """
        months = (end.year - start.year) * 12 + (end.month - start.month)
        if end.day < start.day:
            months -= 1
        return months
