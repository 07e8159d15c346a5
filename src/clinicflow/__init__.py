"""
Clinic-Flow: appointment and treatment package scheduling service

A clean architecture-based service that reconciles a patient's multi-session
treatment packages against appointment edits and commits the resulting
operations to persistence.
"""

__version__ = "0.1.0"
__author__ = "Clinic-Flow Team"
__description__ = "Appointment and treatment package scheduling service"
