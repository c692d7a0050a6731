"""Repair shop manager: repair jobs, SMS log, invoices and a credential vault."""

__version__ = "1.0.0"
