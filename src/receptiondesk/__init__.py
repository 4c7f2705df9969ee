"""
Reception Desk: clinic receptionist backend

Appointment decisions, the patient waiting queue, doctor schedules and
notifications, with doctor-scoped live updates pushed to connected sessions.
"""

__version__ = "0.1.0"
__description__ = "Clinic receptionist backend"
