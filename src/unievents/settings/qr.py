"""QR code signing and check-in settings."""

from decouple import config

# Shared HMAC secret for every QR code the platform mints (tickets, registrations, events).
# No default: minting without it raises SigningSecretMissingError.
QR_SIGNING_SECRET: str | None = config("QR_SIGNING_SECRET", default=None)

# Event QR codes (students scan) are rejected once their payload is older than this.
EVENT_QR_MAX_AGE_HOURS = config("EVENT_QR_MAX_AGE_HOURS", default=24, cast=int)

# Students may scan the event QR this many minutes before the event starts.
CHECK_IN_EARLY_MINUTES = config("CHECK_IN_EARLY_MINUTES", default=30, cast=int)

# Minimum seconds between two student scans of the same event.
CHECK_IN_SCAN_COOLDOWN_SECONDS = config("CHECK_IN_SCAN_COOLDOWN_SECONDS", default=5, cast=int)
