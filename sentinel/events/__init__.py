"""CME alerting over tick snapshots."""

from .alerts import CMEAlert, detect_cme_alert, generate_alert_message, summarize_alerts

__all__ = ["CMEAlert", "detect_cme_alert", "generate_alert_message", "summarize_alerts"]
