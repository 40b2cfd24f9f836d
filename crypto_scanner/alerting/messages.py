"""Telegram message text for baselines, drop alerts and daily summaries."""

from html import escape
from typing import Optional

from ..models import Baseline, DailySummary, DriftAlert, Trigger

_TRIGGER_TITLES = {
    Trigger.MANUAL: "🔄 <b>Baseline reset manually</b>",
    Trigger.SCHEDULED: "📌 <b>Daily baseline set</b>",
    Trigger.STARTUP: "🚀 <b>Initial baseline set</b>",
}


def format_price(price: float) -> str:
    if price < 1:
        return f"${price:,.6f}"
    return f"${price:,.2f}"


def format_pct(value: float) -> str:
    return f"{value:+.2f}%"


def format_timestamp(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def format_baseline_message(baseline: Baseline, trigger: Trigger) -> str:
    """Announce a new basket, naming what caused the reset."""
    lines = [
        _TRIGGER_TITLES.get(trigger, "📌 <b>Baseline set</b>"),
        f"📅 {baseline.date.isoformat()} · ⏱️ {format_timestamp(baseline.set_at)}",
        "",
        f"<b>Top {len(baseline.coins)} coins:</b>",
    ]
    for i, coin in enumerate(baseline.coins, start=1):
        lines.append(
            f"{i}. {escape(coin.symbol)} - {format_price(coin.price)} ({format_pct(coin.change24h)} 24h)"
        )
    return "\n".join(lines)


def format_drop_alert(alert: DriftAlert, threshold_pct: Optional[float] = None) -> str:
    lines = [
        f"🔴 <b>{escape(alert.symbol)} down {abs(alert.drift_pct):.2f}% from baseline</b>",
        f"Baseline: {format_price(alert.baseline_price)}",
        f"Now: {format_price(alert.live_price)}",
        f"Drift: {format_pct(alert.drift_pct)}",
    ]
    if threshold_pct is not None:
        lines.append(f"Threshold: {threshold_pct:.2f}%")
    lines.append(f"⏱️ {format_timestamp(alert.at)}")
    return "\n".join(lines)


def format_summary(summary: DailySummary) -> str:
    lines = [
        f"📊 <b>Daily summary {summary.date.isoformat()}</b>",
        f"⏱️ {format_timestamp(summary.generated_at)}",
        "",
    ]
    if not summary.rows:
        lines.append("No baseline coins found in the live listing.")
    for row in summary.rows:
        lines.append(
            f"{row.rank}. {escape(row.symbol)} {format_pct(row.drift_pct)} "
            f"({format_price(row.baseline_price)} → {format_price(row.live_price)})"
        )
    return "\n".join(lines)


def format_degraded(cadence: str, failures: int, error: Exception) -> str:
    return (
        f"🚨 <b>CRYPTO SCANNER DEGRADED</b>\n\n"
        f"{failures} consecutive {escape(cadence)} failures.\n"
        f"Last error: {escape(str(error))}"
    )
