"""
Display lookups for ticket enums and Thai date formatting.

Unknown enum values fall back to the raw value (labels) or a neutral
grey (colours) so a new enum member never breaks a notification.
"""
from datetime import datetime
from typing import Optional

import pytz

CATEGORY_LABELS = {
    "HARDWARE": "ฮาร์ดแวร์",
    "SOFTWARE": "ซอฟต์แวร์",
    "NETWORK": "เครือข่าย",
    "ACCOUNT": "บัญชีผู้ใช้",
    "EMAIL": "อีเมล",
    "PRINTER": "เครื่องพิมพ์",
    "OTHER": "อื่นๆ",
}

PRIORITY_LABELS = {
    "LOW": "ต่ำ",
    "MEDIUM": "ปานกลาง",
    "HIGH": "สูง",
    "URGENT": "เร่งด่วน",
}

STATUS_LABELS = {
    "OPEN": "เปิด",
    "IN_PROGRESS": "กำลังดำเนินการ",
    "RESOLVED": "แก้ไขแล้ว",
    "CLOSED": "ปิด",
    "CANCELLED": "ยกเลิก",
}

DEFAULT_HEX_COLOR = "#6B7280"

PRIORITY_HEX_COLORS = {
    "LOW": "#6B7280",
    "MEDIUM": "#3B82F6",
    "HIGH": "#F59E0B",
    "URGENT": "#EF4444",
}

STATUS_HEX_COLORS = {
    "OPEN": "#3B82F6",
    "IN_PROGRESS": "#F59E0B",
    "RESOLVED": "#10B981",
    "CLOSED": "#6B7280",
    "CANCELLED": "#EF4444",
}

PRIORITY_EMOJIS = {
    "LOW": "🟢",
    "MEDIUM": "🟡",
    "HIGH": "🟠",
    "URGENT": "🔴",
}

THAI_MONTHS = [
    "มกราคม", "กุมภาพันธ์", "มีนาคม", "เมษายน", "พฤษภาคม", "มิถุนายน",
    "กรกฎาคม", "สิงหาคม", "กันยายน", "ตุลาคม", "พฤศจิกายน", "ธันวาคม",
]

THAI_MONTHS_SHORT = [
    "ม.ค.", "ก.พ.", "มี.ค.", "เม.ย.", "พ.ค.", "มิ.ย.",
    "ก.ค.", "ส.ค.", "ก.ย.", "ต.ค.", "พ.ย.", "ธ.ค.",
]

BUDDHIST_ERA_OFFSET = 543


def get_category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


def get_priority_label(priority: str) -> str:
    return PRIORITY_LABELS.get(priority, priority)


def get_status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status)


def get_priority_hex_color(priority: str) -> str:
    return PRIORITY_HEX_COLORS.get(priority, DEFAULT_HEX_COLOR)


def get_status_hex_color(status: str) -> str:
    return STATUS_HEX_COLORS.get(status, DEFAULT_HEX_COLOR)


def get_priority_emoji(priority: str) -> str:
    return PRIORITY_EMOJIS.get(priority, "⚪")


def to_display_timezone(value: datetime, tz_name: str) -> datetime:
    """Naive datetimes are treated as UTC, which is what the database hands back."""
    if value.tzinfo is None:
        value = pytz.utc.localize(value)
    return value.astimezone(pytz.timezone(tz_name))


def format_thai_datetime(value: Optional[datetime], tz_name: str = "Asia/Bangkok") -> str:
    """19 ตุลาคม 2569 เวลา 14:30"""
    if value is None:
        return "-"
    local = to_display_timezone(value, tz_name)
    return (
        f"{local.day} {THAI_MONTHS[local.month - 1]} {local.year + BUDDHIST_ERA_OFFSET} "
        f"เวลา {local.hour:02d}:{local.minute:02d}"
    )


def format_thai_short_datetime(value: Optional[datetime], tz_name: str = "Asia/Bangkok") -> str:
    """19 ต.ค. 2569 14:30"""
    if value is None:
        return "-"
    local = to_display_timezone(value, tz_name)
    return (
        f"{local.day} {THAI_MONTHS_SHORT[local.month - 1]} {local.year + BUDDHIST_ERA_OFFSET} "
        f"{local.hour:02d}:{local.minute:02d}"
    )
