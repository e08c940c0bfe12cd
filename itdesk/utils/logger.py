"""
Simple logging wrapper - console only, no files
"""
import logging


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger("itdesk")
notify_logger = logging.getLogger("itdesk.notifications")
audit_logger = logging.getLogger("itdesk.audit")
