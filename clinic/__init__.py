"""
Clinic Appointment Backend

A FastAPI service for booking doctor appointments, with token-based access
for admins, doctors and patients, slot availability, and prescriptions.
"""

__version__ = "1.0.0"
