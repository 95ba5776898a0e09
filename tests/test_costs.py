import unittest
from datetime import date
from decimal import Decimal

from aws_browser.costs import aggregate_costs, parse_amount, to_time_range
from aws_browser.models import CostRecord


def record(service, usage_type, amount, unit="USD"):
    return CostRecord(service=service, usage_type=usage_type, amount=Decimal(amount), unit=unit)


class AggregateCostsTests(unittest.TestCase):
    def test_two_services_sorted_by_amount(self):
        summary = aggregate_costs(
            [
                record("Amazon Elastic Compute Cloud", "BoxUsage", "1.25"),
                record("Amazon Simple Storage Service", "Storage", "0.50"),
            ]
        )

        self.assertEqual(Decimal("1.75"), summary.total)
        self.assertEqual("USD", summary.unit)
        first, second = summary.services
        self.assertEqual("Amazon Elastic Compute Cloud", first.name)
        self.assertAlmostEqual(71.43, first.percent_of_total, places=2)
        self.assertAlmostEqual(28.57, second.percent_of_total, places=2)
        self.assertEqual(1, len(first.children))
        self.assertEqual(100.0, first.children[0].percent_of_service)
        self.assertEqual("BoxUsage", first.children[0].name)

    def test_empty_input(self):
        summary = aggregate_costs([])

        self.assertEqual(Decimal(0), summary.total)
        self.assertEqual([], summary.services)
        self.assertEqual("USD", summary.unit)

    def test_duplicate_usage_types_are_summed(self):
        summary = aggregate_costs(
            [
                record("EC2", "BoxUsage", "0.10"),
                record("EC2", "DataTransfer", "0.05"),
                record("EC2", "BoxUsage", "0.20"),
            ]
        )

        service = summary.services[0]
        self.assertEqual(Decimal("0.35"), service.amount)
        self.assertEqual(["BoxUsage", "DataTransfer"], [child.name for child in service.children])
        self.assertEqual(Decimal("0.30"), service.children[0].amount)

    def test_sums_are_exact(self):
        records = [record("Svc", f"usage-{i % 4}", "0.1") for i in range(30)]
        records += [record("Other", None, "0.3") for _ in range(10)]

        summary = aggregate_costs(records)

        for service in summary.services:
            self.assertEqual(service.amount, sum((c.amount for c in service.children), Decimal(0)))
        self.assertEqual(summary.total, sum((s.amount for s in summary.services), Decimal(0)))
        self.assertEqual(Decimal("6.0"), summary.total)

    def test_zero_total_gives_zero_percentages(self):
        summary = aggregate_costs([record("EC2", "BoxUsage", "0"), record("S3", "Storage", "0")])

        self.assertEqual(Decimal(0), summary.total)
        for service in summary.services:
            self.assertEqual(0.0, service.percent_of_total)
            for child in service.children:
                self.assertEqual(0.0, child.percent_of_service)

    def test_ties_keep_first_seen_order(self):
        summary = aggregate_costs(
            [
                record("Zeta", "a", "1"),
                record("Alpha", "b", "1"),
                record("Mid", "c", "1"),
            ]
        )

        self.assertEqual(["Zeta", "Alpha", "Mid"], [service.name for service in summary.services])

    def test_missing_usage_type_is_grouped(self):
        summary = aggregate_costs([record("EC2", None, "1"), record("EC2", None, "2")])

        child = summary.services[0].children[0]
        self.assertEqual("unknown usage", child.name)
        self.assertEqual("EC2:unknown", child.id)
        self.assertEqual(Decimal(3), child.amount)

    def test_records_without_service_are_skipped(self):
        summary = aggregate_costs([record("", "x", "5"), record("S3", "Storage", "1")])

        self.assertEqual(["S3"], [service.name for service in summary.services])
        self.assertEqual(Decimal(1), summary.total)

    def test_later_unit_wins_and_is_logged(self):
        with self.assertLogs("aws_browser.costs", level="WARNING"):
            summary = aggregate_costs([record("EC2", "a", "1", "USD"), record("S3", "b", "1", "EUR")])

        self.assertEqual("EUR", summary.unit)

    def test_last_updated_is_kept(self):
        summary = aggregate_costs([], last_updated=date(2024, 5, 1))

        self.assertEqual(date(2024, 5, 1), summary.last_updated)


class ParseAmountTests(unittest.TestCase):
    def test_valid_amounts(self):
        self.assertEqual(Decimal("1.25"), parse_amount("1.25"))
        self.assertEqual(Decimal("0.0000001"), parse_amount("0.0000001"))

    def test_invalid_amounts_become_zero(self):
        for raw in (None, "", "abc", "NaN", "Infinity"):
            self.assertEqual(Decimal(0), parse_amount(raw), raw)


class TimeRangeTests(unittest.TestCase):
    def test_presets(self):
        today = date(2024, 3, 10)

        day = to_time_range("24h", today)
        week = to_time_range("7d", today)
        month = to_time_range("30d", today)

        self.assertEqual((date(2024, 3, 10), date(2024, 3, 11), "HOURLY"), (day.start, day.end, day.granularity))
        self.assertEqual((date(2024, 3, 4), date(2024, 3, 11), "DAILY"), (week.start, week.end, week.granularity))
        self.assertEqual(date(2024, 2, 10), month.start)

    def test_unknown_preset(self):
        with self.assertRaises(ValueError):
            to_time_range("1y", date(2024, 1, 1))


if __name__ == "__main__":
    unittest.main()
