from .admin import Admin
from .doctor import Doctor
from .patient import Patient
from .appointment import Appointment, AppointmentStatus

__all__ = ["Admin", "Doctor", "Patient", "Appointment", "AppointmentStatus"]
