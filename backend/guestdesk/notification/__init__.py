# Notification channels
