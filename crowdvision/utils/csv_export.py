# crowdvision/utils/csv_export.py
"""
Alert log export for the external reporting collaborator.
Header: Timestamp,Type,Severity,Message,Zone. The message is always quoted,
every other field only when it needs to be.
"""

import csv
import io
from datetime import date

CSV_COLUMNS = ["Timestamp", "Type", "Severity", "Message", "Zone"]
CSV_HEADER = ",".join(CSV_COLUMNS)


def alerts_to_csv(alerts) -> str:
    buf = io.StringIO()
    # Both writers share the buffer; rows are terminated by hand so the
    # message cell can use its own quoting mode.
    minimal = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="")
    quoted = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="")

    minimal.writerow(CSV_COLUMNS)
    buf.write("\n")
    for a in alerts:
        minimal.writerow([a.timestamp.isoformat(), a.type.value, a.severity.value])
        buf.write(",")
        quoted.writerow([a.message])
        buf.write(",")
        minimal.writerow([a.zone])
        buf.write("\n")
    return buf.getvalue()


def export_filename(prefix: str = "CrowdVision_AlertLog", day=None) -> str:
    return f"{prefix}_{(day or date.today()).isoformat()}.csv"
