"""Run reporting: text summary, JSON result file, webhook notification."""

from kubepromote.report.notify import notify_webhook
from kubepromote.report.render import log_report, render_report, result_json, write_result_file

__all__ = [
    "log_report",
    "notify_webhook",
    "render_report",
    "result_json",
    "write_result_file",
]
