"""Notification results are plain dicts so they can be logged and returned as JSON."""

from clubhub.utils.dates import iso, utcnow

CHANNELS = ("email", "sms", "whatsapp")
DEFAULT_PRIORITY = ("whatsapp", "sms", "email")


def success(channel, message_id=None, status="sent"):
    return {
        "success": True,
        "channel": channel,
        "message_id": message_id,
        "status": status,
        "error": None,
        "sent_at": iso(utcnow()),
    }


def failure(channel, code, message, retryable=False):
    return {
        "success": False,
        "channel": channel,
        "message_id": None,
        "status": "failed",
        "error": {"code": code, "message": message, "retryable": retryable},
        "sent_at": None,
    }


def is_retryable(result):
    return bool(not result["success"] and result["error"] and result["error"]["retryable"])


def batch(results):
    successful = sum(1 for result in results if result["success"])
    return {
        "total": len(results),
        "successful": successful,
        "failed": len(results) - successful,
        "results": results,
    }
