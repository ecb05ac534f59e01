from django.db import models


class CheckInMode(models.TextChoices):
    """Who scans whom at the door."""

    ORGANIZER_SCANS = "ORGANIZER_SCANS", "Organizer scans attendee QR"
    STUDENTS_SCAN = "STUDENTS_SCAN", "Students scan event QR"
