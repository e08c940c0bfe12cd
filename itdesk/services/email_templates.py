"""
Email bodies for ticket lifecycle notifications.

Every function here is pure: the same snapshot and base URL always produce
the same subject, HTML and text, byte for byte.
"""
import html

from itdesk.schemas.notification import EmailMessage, TicketSnapshot
from itdesk.utils.ticket_labels import (
    format_thai_datetime,
    get_category_label,
    get_priority_hex_color,
    get_priority_label,
    get_status_hex_color,
    get_status_label,
)

SUBJECT_PREFIX = "[NHF IT]"
TICKETS_PATH = "/dashboard/it-issues"


def _subject(*parts: str) -> str:
    """Header-safe subject line: embedded line breaks collapse to single spaces."""
    return " ".join(" ".join(parts).split())


def _tickets_link(base_url: str) -> str:
    return f"{base_url.rstrip('/')}{TICKETS_PATH}"


def _reporter_line(snapshot: TicketSnapshot) -> str:
    name = html.escape(snapshot.reported_by.name)
    if snapshot.reported_by.department:
        return f"{name} ({html.escape(snapshot.reported_by.department)})"
    return name


def _base_styles(accent: str, accent_dark: str) -> str:
    return f"""
        <style>
            body {{
                font-family: 'Sarabun', Arial, sans-serif;
                line-height: 1.6;
                color: #333;
                margin: 0;
                padding: 0;
                background-color: #f8fafc;
            }}
            .container {{
                max-width: 600px;
                margin: 0 auto;
                background: white;
                border-radius: 12px;
                overflow: hidden;
                box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);
            }}
            .header {{
                background: linear-gradient(135deg, {accent} 0%, {accent_dark} 100%);
                color: white;
                padding: 30px 20px;
                text-align: center;
            }}
            .header h1 {{
                margin: 0;
                font-size: 24px;
                font-weight: 600;
            }}
            .content {{
                padding: 30px 20px;
            }}
            .ticket-info {{
                background: #f8fafc;
                border-radius: 8px;
                padding: 20px;
                margin: 20px 0;
                border-left: 4px solid {accent};
            }}
            .info-row {{
                display: flex;
                justify-content: space-between;
                margin: 10px 0;
                align-items: center;
            }}
            .label {{
                font-weight: 600;
                color: #4B5563;
                flex: 1;
            }}
            .value {{
                flex: 2;
                text-align: right;
            }}
            .badge {{
                padding: 4px 12px;
                border-radius: 20px;
                font-size: 12px;
                font-weight: 600;
                color: white;
                display: inline-block;
            }}
            .description-box {{
                background: #f9fafb;
                border: 1px solid #e5e7eb;
                border-radius: 8px;
                padding: 15px;
                margin: 15px 0;
            }}
            .footer {{
                background: #f8fafc;
                padding: 20px;
                text-align: center;
                color: #6B7280;
                font-size: 14px;
                border-top: 1px solid #e5e7eb;
            }}
            .button {{
                display: inline-block;
                padding: 12px 24px;
                background: {accent};
                color: white;
                text-decoration: none;
                border-radius: 6px;
                font-weight: 600;
                margin: 20px 0;
            }}
            .urgent {{
                border-left-color: #EF4444 !important;
                background: #fef2f2;
            }}
        </style>"""


def _footer() -> str:
    return """
            <div class="footer">
                <p>อีเมลนี้ถูกส่งอัตโนมัติจากระบบแจ้งปัญหาไอที<br>
                National Health Foundation (NHF)</p>
            </div>"""


def generate_new_ticket_email_html(snapshot: TicketSnapshot, base_url: str, tz_name: str = "Asia/Bangkok") -> str:
    title = html.escape(snapshot.title)
    description = html.escape(snapshot.description).replace("\n", "<br>")
    urgent_class = " urgent" if snapshot.priority == "URGENT" else ""

    return f"""<!DOCTYPE html>
<html lang="th">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Ticket ใหม่ - {title}</title>{_base_styles("#3B82F6", "#1D4ED8")}
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>🎫 Ticket ใหม่ถูกสร้าง</h1>
            <p style="margin: 10px 0 0 0; opacity: 0.9;">ระบบแจ้งปัญหาไอที - NHF</p>
        </div>
        <div class="content">
            <h2 style="color: #1F2937; margin-top: 0;">{title}</h2>
            <div class="ticket-info{urgent_class}">
                <div class="info-row">
                    <span class="label">หมายเลข Ticket:</span>
                    <span class="value"><strong>#{snapshot.ticket_id}</strong></span>
                </div>
                <div class="info-row">
                    <span class="label">หมวดหมู่:</span>
                    <span class="value">{html.escape(get_category_label(snapshot.category))}</span>
                </div>
                <div class="info-row">
                    <span class="label">ความสำคัญ:</span>
                    <span class="value"><span class="badge" style="background-color: {get_priority_hex_color(snapshot.priority)}">{html.escape(get_priority_label(snapshot.priority))}</span></span>
                </div>
                <div class="info-row">
                    <span class="label">สถานะ:</span>
                    <span class="value"><span class="badge" style="background-color: {get_status_hex_color(snapshot.status)}">{html.escape(get_status_label(snapshot.status))}</span></span>
                </div>
                <div class="info-row">
                    <span class="label">ผู้แจ้ง:</span>
                    <span class="value">{_reporter_line(snapshot)}</span>
                </div>
                <div class="info-row">
                    <span class="label">วันที่สร้าง:</span>
                    <span class="value">{format_thai_datetime(snapshot.created_at, tz_name)}</span>
                </div>
            </div>
            <div>
                <h3 style="color: #374151; margin-bottom: 10px;">รายละเอียดปัญหา:</h3>
                <div class="description-box">{description}</div>
            </div>
            <div style="text-align: center; margin-top: 30px;">
                <a href="{_tickets_link(base_url)}" class="button">ดู Ticket ในระบบ</a>
            </div>
        </div>{_footer()}
    </div>
</body>
</html>
"""


def generate_status_update_email_html(
    snapshot: TicketSnapshot, old_status: str, base_url: str, tz_name: str = "Asia/Bangkok"
) -> str:
    title = html.escape(snapshot.title)
    assignee_row = ""
    if snapshot.assigned_to:
        assignee_row = f"""
                <div class="info-row">
                    <span class="label">ผู้รับผิดชอบ:</span>
                    <span class="value">{html.escape(snapshot.assigned_to.name)}</span>
                </div>"""
    last_update = snapshot.updated_at or snapshot.created_at

    return f"""<!DOCTYPE html>
<html lang="th">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>อัพเดทสถานะ Ticket - {title}</title>{_base_styles("#10B981", "#059669")}
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>🔄 สถานะ Ticket อัพเดท</h1>
            <p style="margin: 10px 0 0 0; opacity: 0.9;">ระบบแจ้งปัญหาไอที - NHF</p>
        </div>
        <div class="content">
            <h2 style="color: #1F2937; margin-top: 0;">{title}</h2>
            <div style="background: #f0fdf4; border: 2px solid #10B981; border-radius: 8px; padding: 20px; margin: 20px 0; text-align: center;">
                <h3 style="margin-top: 0; color: #065F46;">สถานะได้รับการอัพเดท</h3>
                <span class="badge" style="background-color: {get_status_hex_color(old_status)}">{html.escape(get_status_label(old_status))}</span>
                <span style="font-size: 20px; color: #10B981;"> → </span>
                <span class="badge" style="background-color: {get_status_hex_color(snapshot.status)}">{html.escape(get_status_label(snapshot.status))}</span>
            </div>
            <div class="ticket-info">
                <div class="info-row">
                    <span class="label">หมายเลข Ticket:</span>
                    <span class="value"><strong>#{snapshot.ticket_id}</strong></span>
                </div>
                <div class="info-row">
                    <span class="label">หมวดหมู่:</span>
                    <span class="value">{html.escape(get_category_label(snapshot.category))}</span>
                </div>
                <div class="info-row">
                    <span class="label">ความสำคัญ:</span>
                    <span class="value"><span class="badge" style="background-color: {get_priority_hex_color(snapshot.priority)}">{html.escape(get_priority_label(snapshot.priority))}</span></span>
                </div>
                <div class="info-row">
                    <span class="label">ผู้แจ้ง:</span>
                    <span class="value">{_reporter_line(snapshot)}</span>
                </div>{assignee_row}
                <div class="info-row">
                    <span class="label">อัพเดทล่าสุด:</span>
                    <span class="value">{format_thai_datetime(last_update, tz_name)}</span>
                </div>
            </div>
            <div style="text-align: center; margin-top: 30px;">
                <a href="{_tickets_link(base_url)}" class="button">ดู Ticket ในระบบ</a>
            </div>
        </div>{_footer()}
    </div>
</body>
</html>
"""


def compose_new_ticket_email(snapshot: TicketSnapshot, base_url: str, tz_name: str = "Asia/Bangkok") -> EmailMessage:
    """Confirmation to the reporter that their ticket was created."""
    text = (
        f"Ticket #{snapshot.ticket_id} ถูกสร้างแล้ว\n\n"
        f"หัวข้อ: {snapshot.title}\n"
        f"คำอธิบาย: {snapshot.description}\n"
        f"สถานะ: {get_status_label(snapshot.status)}\n"
        f"ความสำคัญ: {get_priority_label(snapshot.priority)}\n\n"
        f"ดู Ticket ได้ที่: {_tickets_link(base_url)}"
    )
    return EmailMessage(
        to=snapshot.reported_by.email,
        subject=_subject(SUBJECT_PREFIX, f"Ticket #{snapshot.ticket_id} ถูกสร้างแล้ว -", snapshot.title),
        html=generate_new_ticket_email_html(snapshot, base_url, tz_name),
        text=text,
    )


def compose_status_change_email(
    snapshot: TicketSnapshot, old_status: str, base_url: str, tz_name: str = "Asia/Bangkok"
) -> EmailMessage:
    """Tells the reporter their ticket moved from old_status to its current status."""
    text = (
        f"สถานะ Ticket #{snapshot.ticket_id} ได้รับการอัพเดท\n\n"
        f"หัวข้อ: {snapshot.title}\n"
        f"สถานะเดิม: {get_status_label(old_status)}\n"
        f"สถานะใหม่: {get_status_label(snapshot.status)}\n\n"
        f"ดู Ticket ได้ที่: {_tickets_link(base_url)}"
    )
    return EmailMessage(
        to=snapshot.reported_by.email,
        subject=_subject(
            SUBJECT_PREFIX, f"อัพเดทสถานะ Ticket #{snapshot.ticket_id} -", get_status_label(snapshot.status)
        ),
        html=generate_status_update_email_html(snapshot, old_status, base_url, tz_name),
        text=text,
    )


def compose_it_team_email(
    snapshot: TicketSnapshot, it_team_email: str, base_url: str, tz_name: str = "Asia/Bangkok"
) -> EmailMessage:
    """Escalation copy of a HIGH/URGENT ticket for the IT team mailbox."""
    urgency = "เร่งด่วน" if snapshot.priority == "URGENT" else "ความสำคัญสูง"
    text = (
        "Ticket ใหม่ที่ต้องให้ความสำคัญ\n\n"
        f"Ticket #{snapshot.ticket_id}\n"
        f"หัวข้อ: {snapshot.title}\n"
        f"ผู้แจ้ง: {snapshot.reported_by.name}\n"
        f"ความสำคัญ: {get_priority_label(snapshot.priority)}\n\n"
        f"ดู Ticket ได้ที่: {_tickets_link(base_url)}"
    )
    return EmailMessage(
        to=it_team_email,
        subject=_subject(SUBJECT_PREFIX, f"Ticket {urgency} #{snapshot.ticket_id} -", snapshot.title),
        html=generate_new_ticket_email_html(snapshot, base_url, tz_name),
        text=text,
    )
