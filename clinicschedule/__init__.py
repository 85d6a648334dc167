"""
Scheduling core for a clinic dashboard: doctor availability and calendar views.
"""

__version__ = "0.1.0"
