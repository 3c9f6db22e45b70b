# tests/test_csv_export.py
"""Tests for the alert log CSV export."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import csv
import io
from datetime import date, datetime, timezone

from crowdvision.domain import Alert, AlertType, Severity
from crowdvision.utils.csv_export import CSV_COLUMNS, CSV_HEADER, alerts_to_csv, export_filename

TS = datetime(2026, 3, 14, 18, 30, tzinfo=timezone.utc)


def make_alert(id, message, zone="North Gate", type=AlertType.CONGESTION, severity=Severity.DANGER):
    return Alert(id=id, timestamp=TS, type=type, severity=severity, message=message, zone=zone)


def parse(text):
    return list(csv.reader(io.StringIO(text)))


class TestAlertsToCsv:
    def test_header_only_when_empty(self):
        text = alerts_to_csv([])
        assert text == CSV_HEADER + "\n"
        assert parse(text) == [CSV_COLUMNS]

    def test_one_row_per_alert(self):
        text = alerts_to_csv([
            make_alert(2, "Extreme density detected at North Gate."),
            make_alert(1, "Parking Sector A is reaching full capacity (100%).",
                       zone="Sector A", type=AlertType.PARKING, severity=Severity.INFO),
        ])
        assert text.count("\n") == 3
        assert parse(text) == [
            CSV_COLUMNS,
            ["2026-03-14T18:30:00+00:00", "CONGESTION", "DANGER", "Extreme density detected at North Gate.",
             "North Gate"],
            ["2026-03-14T18:30:00+00:00", "PARKING", "INFO", "Parking Sector A is reaching full capacity (100%).",
             "Sector A"],
        ]

    def test_message_always_quoted(self):
        text = alerts_to_csv([make_alert(1, "Extreme density detected at North Gate.")])
        assert text.splitlines()[1] == (
            '2026-03-14T18:30:00+00:00,CONGESTION,DANGER,"Extreme density detected at North Gate.",North Gate'
        )

    def test_embedded_quotes_and_commas_survive(self):
        message = 'Crowd chanting "open the gate", pushing'
        text = alerts_to_csv([make_alert(1, message, zone="Gate 3, Lower")])
        assert '"Crowd chanting ""open the gate"", pushing"' in text
        assert text.splitlines()[1].endswith(',"Gate 3, Lower"')
        row = parse(text)[1]
        assert len(row) == 5
        assert row[3] == message
        assert row[4] == "Gate 3, Lower"

    def test_multiline_message_stays_one_record(self):
        text = alerts_to_csv([make_alert(1, "Line one\nline two")])
        rows = parse(text)
        assert len(rows) == 2
        assert rows[1][3] == "Line one\nline two"


class TestFilename:
    def test_dated_filename(self):
        assert export_filename(day=date(2026, 3, 14)) == "CrowdVision_AlertLog_2026-03-14.csv"
