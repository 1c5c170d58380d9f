"""
SnapCap Control Panel.

A Python control panel core for the SnapCap motorized telescope dust cover
and flat-field illuminator, driven over a 38400 baud serial link.
"""

__version__ = "1.0.0"
