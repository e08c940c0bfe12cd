"""
LINE flex-message builders for ticket and email-request notifications.
Pure functions; the output is the JSON-ready dict sent as one message.
"""
from typing import Any, Dict, List

from itdesk.schemas.notification import ChatEventKind, EmailRequestSnapshot, TicketSnapshot
from itdesk.utils.ticket_labels import (
    format_thai_short_datetime,
    get_category_label,
    get_priority_emoji,
    get_priority_hex_color,
    get_priority_label,
    get_status_label,
)

DESCRIPTION_PREVIEW_LENGTH = 100

TICKET_HEADERS = {
    ChatEventKind.new_ticket: ("Ticket ใหม่ถูกสร้าง", "#3B82F6"),
    ChatEventKind.status_update: ("อัพเดทสถานะ Ticket", "#10B981"),
    ChatEventKind.it_team_escalation: ("Ticket ความสำคัญสูง", "#EF4444"),
}

EMAIL_REQUEST_COLOR = "#7C3AED"


def _info_row(label: str, value: str, **value_style: Any) -> Dict[str, Any]:
    value_component = {
        "type": "text",
        "text": value or "-",
        "wrap": True,
        "color": "#333333",
        "size": "sm",
        "flex": 3,
    }
    value_component.update(value_style)
    return {
        "type": "box",
        "layout": "baseline",
        "spacing": "sm",
        "contents": [
            {"type": "text", "text": label, "color": "#666666", "size": "sm", "flex": 2},
            value_component,
        ],
    }


def _header(title: str, subtitle: str, color: str) -> Dict[str, Any]:
    return {
        "type": "box",
        "layout": "vertical",
        "contents": [
            {"type": "text", "text": title, "weight": "bold", "color": "#FFFFFF", "size": "lg"},
            {"type": "text", "text": subtitle, "color": "#FFFFFF", "size": "sm"},
        ],
        "backgroundColor": color,
        "paddingAll": "20px",
    }


def _footer(uri: str, color: str) -> Dict[str, Any]:
    return {
        "type": "box",
        "layout": "vertical",
        "spacing": "sm",
        "contents": [
            {
                "type": "button",
                "style": "primary",
                "height": "sm",
                "action": {"type": "uri", "label": "ดูในระบบ", "uri": uri},
                "color": color,
            },
            {"type": "spacer", "size": "sm"},
        ],
    }


def _bubble(alt_text: str, header: Dict[str, Any], body: List[Dict[str, Any]], footer: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "flex",
        "altText": alt_text,
        "contents": {
            "type": "bubble",
            "header": header,
            "body": {"type": "box", "layout": "vertical", "contents": body},
            "footer": footer,
        },
    }


def _preview(description: str) -> str:
    if len(description) > DESCRIPTION_PREVIEW_LENGTH:
        return description[:DESCRIPTION_PREVIEW_LENGTH] + "..."
    return description


def compose_ticket_chat_card(
    snapshot: TicketSnapshot,
    event_kind: ChatEventKind,
    base_url: str,
    tz_name: str = "Asia/Bangkok",
) -> Dict[str, Any]:
    event_kind = ChatEventKind(event_kind)
    header_text, header_color = TICKET_HEADERS[event_kind]
    icon = "🚨" if snapshot.priority == "URGENT" else "🎫"

    reporter = snapshot.reported_by.name
    if snapshot.reported_by.department:
        reporter = f"{reporter} ({snapshot.reported_by.department})"

    rows = [
        _info_row("หมวดหมู่:", get_category_label(snapshot.category)),
        _info_row(
            "ความสำคัญ:",
            f"{get_priority_emoji(snapshot.priority)} {get_priority_label(snapshot.priority)}",
            color=get_priority_hex_color(snapshot.priority),
            weight="bold",
        ),
        _info_row("สถานะ:", get_status_label(snapshot.status)),
        _info_row("ผู้แจ้ง:", reporter),
    ]
    if snapshot.assigned_to:
        rows.append(_info_row("ผู้รับผิดชอบ:", snapshot.assigned_to.name))
    rows.append(_info_row("วันที่:", format_thai_short_datetime(snapshot.created_at, tz_name)))

    body: List[Dict[str, Any]] = [
        {"type": "text", "text": snapshot.title, "weight": "bold", "size": "lg", "wrap": True},
        {"type": "separator", "margin": "md"},
        {"type": "box", "layout": "vertical", "margin": "md", "spacing": "sm", "contents": rows},
    ]
    if snapshot.description:
        body.append({"type": "separator", "margin": "md"})
        body.append({
            "type": "text",
            "text": _preview(snapshot.description),
            "wrap": True,
            "color": "#666666",
            "size": "sm",
            "margin": "md",
        })

    return _bubble(
        f"{header_text} #{snapshot.ticket_id}",
        _header(f"{icon} {header_text}", f"Ticket #{snapshot.ticket_id}", header_color),
        body,
        _footer(f"{base_url.rstrip('/')}/dashboard/it-issues", header_color),
    )


def compose_email_request_chat_card(
    snapshot: EmailRequestSnapshot, base_url: str, tz_name: str = "Asia/Bangkok"
) -> Dict[str, Any]:
    rows = [
        _info_row("ชื่อเล่น:", snapshot.nickname),
        _info_row("เบอร์โทร:", snapshot.phone),
        _info_row("ตำแหน่ง:", snapshot.position),
        _info_row("สังกัด:", snapshot.department),
        _info_row("อีเมลตอบกลับ:", snapshot.reply_email),
        _info_row("วันที่ขอ:", format_thai_short_datetime(snapshot.requested_at, tz_name)),
    ]
    body = [
        {
            "type": "text",
            "text": f"{snapshot.thai_name} ({snapshot.english_name})",
            "weight": "bold",
            "size": "lg",
            "wrap": True,
        },
        {"type": "separator", "margin": "md"},
        {"type": "box", "layout": "vertical", "margin": "md", "spacing": "sm", "contents": rows},
    ]
    return _bubble(
        f"ขออีเมลพนักงานใหม่ - {snapshot.thai_name}",
        _header("📧 ขออีเมลพนักงานใหม่", "คำขออีเมลพนักงานใหม่จากระบบ", EMAIL_REQUEST_COLOR),
        body,
        _footer(f"{base_url.rstrip('/')}/dashboard/email-request", EMAIL_REQUEST_COLOR),
    )
