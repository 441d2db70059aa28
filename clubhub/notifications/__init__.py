"""Email, SMS and WhatsApp notifications with delivery logging and scheduled jobs."""
