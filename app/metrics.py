from prometheus_client import Counter

# Booking lifecycle
BOOKINGS_SUBMITTED = Counter("luxcar_bookings_submitted_total", "Bookings stored", ["service"])
BOOKING_TRANSITIONS = Counter("luxcar_booking_transitions_total", "Booking status changes and removals", ["action"])

# Auth
LOGINS = Counter("luxcar_logins_total", "Login attempts", ["result"])

# Notifications
NOTIF_COUNTER_SENT = Counter("luxcar_notifications_sent_total", "Total notifications sent", ["channel", "provider"])
NOTIF_COUNTER_FAILED = Counter("luxcar_notifications_failed_total", "Total notification failures", ["channel", "provider"])
