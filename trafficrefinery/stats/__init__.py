"""Periodic statistics collection and JSON report output."""