from clubhub.notifications.channels import email, messaging

SENDERS = {
    "email": email.send,
    "sms": messaging.send_sms,
    "whatsapp": messaging.send_whatsapp,
}
