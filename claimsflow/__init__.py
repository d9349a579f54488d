"""
ClaimsFlow - motor insurance FNOL intake and claim triage.
"""

__version__ = "1.0.0"
