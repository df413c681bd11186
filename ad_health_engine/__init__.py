"""
AD Health Engine
================
A read-only health check for Active Directory domain controllers.
Probes every DC, runs dcdiag, classifies the results against thresholds
and writes a colour-coded HTML report.

WARNING: This tool operates in STRICT READ-ONLY mode.
         No repair, resync or service-control command is ever executed.
"""

__version__ = "1.0.0"
__author__ = "AD Health Engine"
__mode__ = "READ-ONLY"
