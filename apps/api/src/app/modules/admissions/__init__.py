"""
Admissions Module

Handles the school admission lifecycle:
1. Email verification with a one-time code before intake
2. Application intake with system-issued admission ids
3. Supporting document uploads (birth certificate, form 137, transcript, 2x2 picture)
4. Accept/reject decisions with email notice and notification records

Background Jobs (via APScheduler):
- admissions_purge_expired_verifications: removes expired verification codes
"""

from .jobs import register_admissions_jobs
from .router import router

__all__ = ["router", "register_admissions_jobs"]
